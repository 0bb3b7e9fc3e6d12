"""Severity levels reported by checklist items.

Ordered so the aggregate verdict is a plain max-reduction:
SAFE < PENDING < WARNING < ERROR.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum


class Severity(IntEnum):
    SAFE = 0
    PENDING = 1
    WARNING = 2
    ERROR = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, text: str) -> "Severity":
        """Parse a label such as ``"warning"`` (case-insensitive)."""
        try:
            return cls[text.strip().upper()]
        except (KeyError, AttributeError):
            raise ValueError(f"Unknown severity: {text!r}") from None


def aggregate(severities: Iterable[Severity]) -> Severity:
    """Worst severity in ``severities``, or SAFE when there are none."""
    return max(severities, default=Severity.SAFE)
