"""
mfa_gateway.services

Service-layer package.

Responsibilities:
- Run the login pipeline for each HTTP step.
- Own the audit sink and its read queries.
"""

# Package marker.
