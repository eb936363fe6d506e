"""
mfa_gateway.orchestrator

Login orchestration package (LangGraph state machine).

Responsibilities:
- Typed state schema, nodes, routing, graph compilation and domain errors.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Call sites should go through `services.login_service.LoginService`, not the graph directly.
