"""Checklist registry — loads checklist.yaml and builds a populated manager.

``build_manager()`` is the explicit replacement for a process-wide default
manager: the owning application calls it once at startup and keeps the
result.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.config import settings
from src.probes.items import ProbeItem
from src.probes.models import ProbeDef

from .manager import ChecklistManager

logger = logging.getLogger(__name__)


class ChecklistRegistry:
    """Loads and caches probe definitions from checklist.yaml."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path or settings.checklist_file)
        self._defs: list[ProbeDef] = []
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> list[ProbeDef]:
        """Parse checklist.yaml and return the definitions in file order."""
        if self._loaded and not force:
            return self._defs

        self._defs = []
        if not self._path.exists():
            logger.warning("Checklist file not found: %s", self._path)
            self._loaded = True
            return self._defs

        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except Exception as e:
            logger.error("Failed to parse %s: %s", self._path, e)
            self._loaded = True
            return self._defs

        if not isinstance(raw, dict):
            logger.error("Expected a mapping with a 'checks' list in %s", self._path)
            self._loaded = True
            return self._defs

        seen: set[str] = set()
        for entry in raw.get("checks") or []:
            try:
                defn = ProbeDef.model_validate(entry)
            except ValidationError as e:
                logger.warning("Skipping malformed check entry: %s", e)
                continue
            if defn.id in seen:
                logger.warning("Skipping duplicate check id: %s", defn.id)
                continue
            seen.add(defn.id)
            self._defs.append(defn)

        self._loaded = True
        logger.info("Loaded %d checks from %s", len(self._defs), self._path)
        return self._defs

    @property
    def definitions(self) -> list[ProbeDef]:
        return self.load()

    def get(self, check_id: str) -> ProbeDef | None:
        return next((d for d in self.definitions if d.id == check_id), None)

    def reload(self) -> list[ProbeDef]:
        return self.load(force=True)

    def build_items(self) -> list[ProbeItem]:
        return [ProbeItem(d) for d in self.definitions]

    def to_dict(self) -> list[dict[str, Any]]:
        return [d.model_dump(exclude_defaults=True) for d in self.definitions]


def build_manager(
    path: Path | str | None = None,
    camera_index: int | None = None,
) -> ChecklistManager:
    """Build a fresh manager populated with the configured checks, in file order."""
    registry = ChecklistRegistry(path)
    index = settings.preferred_camera_index if camera_index is None else camera_index
    manager = ChecklistManager.from_items(registry.build_items(), preferred_camera_index=index)
    logger.info("Checklist manager built with %d items", manager.count())
    return manager
