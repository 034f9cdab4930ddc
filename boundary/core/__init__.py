"""Core — pure, transport-agnostic pieces of the pipeline.

Invariants:
    - Nothing in core imports FastAPI/Starlette
    - schema, envelope and result are pure; endpoint is declarative config
"""
