"""Undo ledger and activity history."""

from .activity import ActivityLog, RecentIconsPublisher
from .undo import UndoLedger

__all__ = ["ActivityLog", "RecentIconsPublisher", "UndoLedger"]
