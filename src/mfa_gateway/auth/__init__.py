"""
mfa_gateway.auth

Authentication/authorization package.

Responsibilities:
- Password hashing (argon2id).
- Stage/session token issuing and validation.
- FastAPI auth dependencies (session claims + role checks).
"""

# Package marker.
