"""Exception hierarchy for powgate.

Every failure surfaced by the miner, the codec or the gateway client derives
from :class:`PowGateError`. Nothing is retried or recovered internally.
"""

from __future__ import annotations


class PowGateError(RuntimeError):
    """Base exception raised for powgate failures."""


class InvalidDifficultyError(PowGateError, ValueError):
    """Raised when a difficulty is negative, not an integer or longer than the digest."""


class MiningCancelledError(PowGateError):
    """Raised when a search was cancelled or ran past its deadline.

    No partial result is attached.
    """

    def __init__(self, message: str = "mining cancelled", *, trials: int = 0) -> None:
        super().__init__(message)
        self.trials = trials


class MalformedResponseError(PowGateError):
    """Raised when a gateway response body does not have the expected shape."""


class GatewayTransportError(PowGateError):
    """Raised when the gateway could not be reached at the network level."""


class SubmissionRejectedError(PowGateError):
    """Raised when the gateway answers with a non-success status.

    The response body is kept verbatim in ``message``.
    """

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"gateway responded with {status}: {message}")
        self.status = status
        self.message = message


class ContentNotFoundError(SubmissionRejectedError):
    """Raised when content lookup by work hash returns 404."""
