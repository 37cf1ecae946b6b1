"""
Rules engine package.

Defines the allowance rule model and the classification engine. Rules carry
``all``/``any`` condition groups over employee facts and an outcome
(allowance group and tier); the highest-priority matching rule wins.

Modules of interest:
- models: Data classes for Rule, conditions, outcomes and API models.
- engine: Condition evaluation, ``classify`` and the in-memory registry.
"""
