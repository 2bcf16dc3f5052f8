from .auth import AuthClient
from .stock_client import StockClient

__all__ = [
    "AuthClient",
    "StockClient",
]
