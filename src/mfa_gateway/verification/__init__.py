"""
mfa_gateway.verification

Pure verification primitives used by the login pipeline.

Responsibilities:
- Face descriptor decoding/matching (`descriptors`).
- Geofence distance checks (`geofence`).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing here touches the database or the network; the orchestrator owns side effects.
