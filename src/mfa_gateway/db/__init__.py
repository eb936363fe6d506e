"""
mfa_gateway.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, repositories and bootstrap seeding.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The login pipeline depends on the `PrincipalStore` protocol, not on these repositories,
# so the backing store can be swapped without touching orchestration logic.
