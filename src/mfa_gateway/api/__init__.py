"""
mfa_gateway.api

API package for the MFA gateway.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and request/response models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers only translate transport shapes and map LoginError to HTTP; decisions live in services.
