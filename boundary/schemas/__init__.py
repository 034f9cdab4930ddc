"""Schemas — input descriptors and response shapes at the API boundary.

Invariants:
    - Schemas validate at system boundary; services never re-validate
"""
