"""
mfa_gateway.api.routers

HTTP routers: login steps, audit queries, biometric status and health probes.
"""
