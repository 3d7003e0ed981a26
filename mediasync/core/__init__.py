"""Core Module Initialization."""

from mediasync.core.connectivity import ConnectivityMonitor
from mediasync.core.history import HistoryLog
from mediasync.core.local_store import LocalStore
from mediasync.core.merge import merge_records
from mediasync.core.queue import MutationQueue
from mediasync.core.remote import RemoteStore, RestRemoteStore

from mediasync.core.coordinator import SyncCoordinator  # isort:skip
from mediasync.core.sched import ReconcileScheduler  # isort:skip
from mediasync.core.service import SyncService  # isort:skip

__all__ = [
    "ConnectivityMonitor",
    "HistoryLog",
    "LocalStore",
    "MutationQueue",
    "ReconcileScheduler",
    "RemoteStore",
    "RestRemoteStore",
    "SyncCoordinator",
    "SyncService",
    "merge_records",
]
