"""Models for MediaSync database tables."""

from mediasync.models.db.base import Base
from mediasync.models.db.collection import CollectionRecord
from mediasync.models.db.history import HistoryRecord
from mediasync.models.db.housekeeping import Housekeeping
from mediasync.models.db.media import MediaRecord
from mediasync.models.db.mutation import MutationRecord

__all__ = [
    "Base",
    "CollectionRecord",
    "HistoryRecord",
    "Housekeeping",
    "MediaRecord",
    "MutationRecord",
]
