from .list_synchronizer import SyncError, SyncSnapshot, SyncStatus, StockListSynchronizer

__all__ = ["StockListSynchronizer", "SyncError", "SyncSnapshot", "SyncStatus"]
