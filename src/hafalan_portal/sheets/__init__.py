"""Access to the spreadsheet-backed record collections."""

from .client import Gateway, Record, SheetsGateway, WriteResult
from .errors import GatewayError, RemoteFetchError, RemoteWriteError

__all__ = [
    "Gateway",
    "GatewayError",
    "Record",
    "RemoteFetchError",
    "RemoteWriteError",
    "SheetsGateway",
    "WriteResult",
]
