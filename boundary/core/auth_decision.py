"""Auth Decision — outcome of the guard check, independent of transport."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Allow:
    """Request may proceed to the handler."""


@dataclass(frozen=True)
class Deny:
    """Request is stopped; caller is sent to redirect_target."""
    redirect_target: str
    reason: str = "missing_token"


AuthDecision = Union[Allow, Deny]
