"""Call Outcomes — tagged result of one Cancellable Call.

Invariants:
    - Exactly one variant per invocation: Success, Aborted or Failure
    - Aborted always carries reason "timeout" when produced by the deadline timer
    - unwrap() is the only place an outcome turns into an exception
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from mediaserve_common.core.errors import RequestAbortedError, RequestFailedError


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    ABORTED = "aborted"
    FAILURE = "failure"


@dataclass(frozen=True)
class Success:
    payload: Any
    status_code: int = 200
    kind: OutcomeKind = field(default=OutcomeKind.SUCCESS, init=False)

    def unwrap(self) -> Any:
        return self.payload


@dataclass(frozen=True)
class Aborted:
    target: str
    reason: str = "timeout"
    kind: OutcomeKind = field(default=OutcomeKind.ABORTED, init=False)

    def unwrap(self) -> Any:
        raise RequestAbortedError(self.target, self.reason)


@dataclass(frozen=True)
class Failure:
    target: str
    error: BaseException
    kind: OutcomeKind = field(default=OutcomeKind.FAILURE, init=False)

    def unwrap(self) -> Any:
        raise RequestFailedError(self.target, self.error) from self.error


CallOutcome = Union[Success, Aborted, Failure]
