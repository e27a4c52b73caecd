"""Remote source gateway package."""

from diversion_sync.gateway.base import RemoteSourceGateway, head_commit
from diversion_sync.gateway.http import DiversionGateway, TokenProvider

__all__ = [
    "DiversionGateway",
    "RemoteSourceGateway",
    "TokenProvider",
    "head_commit",
]
