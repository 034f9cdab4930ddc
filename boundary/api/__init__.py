"""API Layer — FastAPI adapter, auth guard and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return the uniform envelope

Design Decisions:
    - Thin routes delegate to the request pipeline and services
"""
