"""Mining, wire encoding and gateway access."""

from .gateway import GatewayClient
from .miner import Miner

__all__ = [
    "GatewayClient",
    "Miner",
]
