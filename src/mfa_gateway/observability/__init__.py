"""
mfa_gateway.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request id propagation so pipeline decisions can be correlated with their audit entries.
"""

# Package marker.
