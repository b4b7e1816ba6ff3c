from .base import Base
from .bid import Bid, BidStatus
from .load import Load, LoadStatus
from .tracking import LoadTracking, TrackingStatus

__all__ = [
    "Base",
    "Bid",
    "BidStatus",
    "Load",
    "LoadStatus",
    "LoadTracking",
    "TrackingStatus",
]
