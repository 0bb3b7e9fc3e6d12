"""Checklist subsystem: items, severity aggregation, listeners and the manager."""

from .errors import AnchorNotFound, ChecklistError, DuplicateItem, InvalidItem
from .item import ChecklistItem, StaticChecklistItem
from .listeners import CallbackListener, ChecklistListener, ListenerRegistry
from .manager import ChecklistManager, ItemSnapshot
from .severity import Severity, aggregate

__all__ = [
    "AnchorNotFound",
    "CallbackListener",
    "ChecklistError",
    "ChecklistItem",
    "ChecklistListener",
    "ChecklistManager",
    "DuplicateItem",
    "InvalidItem",
    "ItemSnapshot",
    "ListenerRegistry",
    "Severity",
    "StaticChecklistItem",
    "aggregate",
]
