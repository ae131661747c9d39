from .guard import ClientViewGuard
from .tracker import PageVisit, ViewTrackerClient

__all__ = [
    "ClientViewGuard",
    "PageVisit",
    "ViewTrackerClient",
]
