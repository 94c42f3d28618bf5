"""transport-kit — route registration, options, request binding and response envelopes for FastAPI.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Explicit imports only: transport_kit.server, transport_kit.config,
      transport_kit.middleware.request, transport_kit.middleware.response
"""
