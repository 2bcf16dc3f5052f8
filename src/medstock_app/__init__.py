from .app.bootstrap import BootstrapResult, MedStockApp
from .app.state import AppState, Route
from .sync.list_synchronizer import StockListSynchronizer, SyncStatus

__version__ = "0.3.0"

__all__ = [
    "AppState",
    "BootstrapResult",
    "MedStockApp",
    "Route",
    "StockListSynchronizer",
    "SyncStatus",
]
