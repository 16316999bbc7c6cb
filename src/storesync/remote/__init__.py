from .errors import (
    FetchFailure,
    PermanentFetchFailure,
    RetriesExhausted,
    TransientFetchFailure,
)
from .gateway import StoreGateway
from .meta import FetchMeta
from .transport import HttpxTransport, Transport, TransportResponse

__all__ = [
    "FetchFailure",
    "PermanentFetchFailure",
    "RetriesExhausted",
    "TransientFetchFailure",
    "StoreGateway",
    "FetchMeta",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
]
