"""
Workflow authorization package.

- models: Roles, request statuses, actor/request views and API models.
- authz: The role/status transition table and request visibility rules.
"""
