"""Structural misuse of a checklist manager.

An item reporting ERROR is normal operation and never raises.
"""

from __future__ import annotations


class ChecklistError(Exception):
    """Base class for checklist manager errors."""


class InvalidItem(ChecklistError):
    """Item is None or already present in the checklist."""


class DuplicateItem(InvalidItem):
    """Item being inserted is already present in the checklist."""


class AnchorNotFound(ChecklistError):
    """Insertion anchor is not in the checklist."""
