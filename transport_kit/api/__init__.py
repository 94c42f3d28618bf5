"""API Layer — error handlers installed on the FastAPI application.

Invariants:
    - Every error a client sees is JSON
"""
