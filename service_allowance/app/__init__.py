"""
Allowance Service package for the PTS access layer.

This package decides which special-duty allowance group and tier applies
to an employee, and whether an actor may view or move an allowance request
through its approval workflow. It provides:

- app.main: API surface for classification, rate lookup, rule
  administration and workflow checks.
- app.rules: Rule model and first-match classification engine.
- app.workflow: Request statuses, the transition table and visibility rules.
- app.rates: Monthly rates per allowance group and tier.
- app.persistence: JSON seed files for rules and rates.

Guidelines:
- Decisions are pure functions of their inputs; never cache them across
  status changes.
- Missing or malformed data denies rather than allows.
"""
