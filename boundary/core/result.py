"""Service Result — the tagged Ok/Err variant every service operation returns.

Invariants:
    - A ServiceResult is exactly one of Ok(value) or Err(kind, message)
    - Ok never carries None (success envelopes always have non-null data)
    - Err.message is safe to show to the caller
    - Err.kind is always an ErrorKind member; plain strings are converted,
      unknown kinds raise ValueError at construction

Design Decisions:
    - Two frozen dataclasses + a Union alias over a single class with flags:
      isinstance/match narrows the variant for the type checker
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from boundary.core.domain_types import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful service outcome."""
    value: T

    def __post_init__(self):
        if self.value is None:
            raise ValueError("Ok value cannot be None")

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Expected business failure, classified by kind."""
    kind: ErrorKind
    message: str

    def __post_init__(self):
        # "internal" and ErrorKind.INTERNAL must be the same kind downstream
        object.__setattr__(self, "kind", ErrorKind(self.kind))

    @property
    def is_ok(self) -> bool:
        return False


ServiceResult = Union[Ok[T], Err]


def is_service_result(value: object) -> bool:
    """True if value is an Ok or Err instance."""
    return isinstance(value, (Ok, Err))
