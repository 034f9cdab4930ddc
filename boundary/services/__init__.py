"""Services — business logic and the request pipeline that drives it.

Invariants:
    - Services receive ValidatedInput only and return Ok | Err
"""
