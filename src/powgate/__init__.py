"""Proof-of-work submission client for content-addressed storage gateways."""

from .core.bindings import AuxBindings
from .core.errors import (
    ContentNotFoundError,
    GatewayTransportError,
    InvalidDifficultyError,
    MalformedResponseError,
    MiningCancelledError,
    PowGateError,
    SubmissionRejectedError,
)
from .core.pow import meets_difficulty, verify
from .services.codec import (
    decode_list_response,
    encode_submission,
    sort_by_recency_descending,
    verify_submission,
)
from .services.gateway import GatewayClient
from .services.miner import Miner, PowSolution

__all__ = [
    "AuxBindings",
    "ContentNotFoundError", "GatewayTransportError", "InvalidDifficultyError",
    "MalformedResponseError", "MiningCancelledError", "PowGateError",
    "SubmissionRejectedError",
    "meets_difficulty", "verify",
    "decode_list_response", "encode_submission",
    "sort_by_recency_descending", "verify_submission",
    "GatewayClient",
    "Miner", "PowSolution",
]
