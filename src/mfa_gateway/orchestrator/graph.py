from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from mfa_gateway.orchestrator.nodes import (
    LoginDeps,
    admin_biometric_node,
    bind_token_node,
    biometric_node,
    credentials_node,
    entry_node,
    geofence_node,
    issue_session_node,
    route_after_admin_biometric,
    route_after_bind,
    route_after_biometric,
    route_after_credentials,
    route_by_stage,
)
from mfa_gateway.orchestrator.state import LoginState


def build_graph(*, deps: LoginDeps):
    """
    Returns a compiled LangGraph runnable for one login step.

    START -> CREDENTIALS_OK -> {BIOMETRIC_ENROLL | BIOMETRIC_VERIFY} -> GEOFENCE_CHECK ->
    SESSION_ISSUED. Each HTTP step enters at `entry`, is routed to its stage, and ends either
    when the client must supply the next input or once the session token exists. Any node may
    raise a LoginError (REJECTED) after recording its audit entry.
    """

    try:
        from langgraph.graph import END, StateGraph  # type: ignore[import-not-found]
    except Exception as e:  # pragma: no cover
        raise RuntimeError("LangGraph is not available. Install the project dependencies.") from e

    graph = StateGraph(LoginState)

    graph.add_node("entry", _bind_deps(entry_node, deps))
    graph.add_node("credentials", _bind_deps(credentials_node, deps))
    graph.add_node("admin_biometric", _bind_deps(admin_biometric_node, deps))
    graph.add_node("bind_token", _bind_deps(bind_token_node, deps))
    graph.add_node("biometric", _bind_deps(biometric_node, deps))
    graph.add_node("geofence", _bind_deps(geofence_node, deps))
    graph.add_node("issue_session", _bind_deps(issue_session_node, deps))

    graph.set_entry_point("entry")

    graph.add_conditional_edges(
        "entry",
        route_by_stage,
        {"credentials": "credentials", "bind_token": "bind_token"},
    )
    graph.add_conditional_edges(
        "credentials",
        route_after_credentials,
        {"await_client": END, "admin_biometric": "admin_biometric"},
    )
    graph.add_conditional_edges(
        "admin_biometric",
        route_after_admin_biometric,
        {"await_client": END, "issue_session": "issue_session"},
    )
    graph.add_conditional_edges(
        "bind_token",
        route_after_bind,
        {"biometric": "biometric", "geofence": "geofence"},
    )
    graph.add_conditional_edges(
        "biometric",
        route_after_biometric,
        {"await_client": END, "issue_session": "issue_session"},
    )
    graph.add_edge("geofence", "issue_session")
    graph.add_edge("issue_session", END)

    return graph.compile()


def _bind_deps(
    fn: Callable[..., Awaitable[dict[str, Any]]],
    deps: LoginDeps,
) -> Callable[[LoginState], Awaitable[dict[str, Any]]]:
    async def _wrapped(state: LoginState) -> dict[str, Any]:
        return await fn(state, deps=deps)

    return _wrapped
