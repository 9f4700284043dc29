"""Viewer records, registry, activity tracking and persistence."""

from .listener import ViewerListener
from .models import Viewer
from .registry import ViewerRegistry
from .store import ViewerStore
from .tracker import ViewerTracker

__all__ = [
    "Viewer",
    "ViewerListener",
    "ViewerRegistry",
    "ViewerStore",
    "ViewerTracker",
]
