from .auth_service import AuthService
from .stock_gateway import StockAsyncGateway, StockGateway

__all__ = ["AuthService", "StockAsyncGateway", "StockGateway"]
