"""Boundary — validated request/response pipeline for a backend service.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
