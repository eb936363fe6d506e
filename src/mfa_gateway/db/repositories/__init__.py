"""
mfa_gateway.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for principals and audit events.
"""

# Package marker; repositories are imported directly from submodules.
