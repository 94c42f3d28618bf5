"""Middleware — request binding, validation errors, response envelope and HTTP hooks.

Invariants:
    - Route-level middleware is a FastAPI dependency: raising aborts the chain
    - HTTP-level hooks (CORS, request logging) wrap every request, matched or not
"""
