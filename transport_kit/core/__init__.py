"""Core Layer — framework-free contracts and errors.

Invariants:
    - No module in core/ imports from api/, middleware/ or infrastructure/
    - Everything here is plain data or exceptions
"""
