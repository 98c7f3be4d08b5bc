"""
Fetch Results
=============

Explicit outcome type for calls to external platforms.

Client operations never raise past their boundary. Instead they return a
`FetchResult` whose `value` is either the parsed payload or the
operation's documented empty value, and whose `outcome` says which.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class FetchOutcome(str):
    """Why a fetch produced the value it did."""
    OK = "ok"
    NOT_CONFIGURED = "not_configured"
    AUTH_FAILED = "auth_failed"
    UPSTREAM_ERROR = "upstream_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Value plus outcome of an external fetch."""
    value: T
    outcome: str = FetchOutcome.OK
    reason: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome == FetchOutcome.OK

    def map(self, fn: Callable[[T], U]) -> "FetchResult[U]":
        """Transform the value, keeping outcome and reason."""
        return FetchResult(
            value=fn(self.value),
            outcome=self.outcome,
            reason=self.reason,
            status_code=self.status_code,
        )

    @classmethod
    def success(cls, value: T, status_code: Optional[int] = None) -> "FetchResult[T]":
        return cls(value=value, outcome=FetchOutcome.OK, status_code=status_code)

    @classmethod
    def empty(
        cls,
        value: T,
        outcome: str,
        reason: str,
        status_code: Optional[int] = None
    ) -> "FetchResult[T]":
        return cls(value=value, outcome=outcome, reason=reason, status_code=status_code)
