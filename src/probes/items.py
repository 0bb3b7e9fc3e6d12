"""ProbeItem — a checklist item that re-runs one probe on its own thread.

Lifecycle:
    item = ProbeItem(ProbeDef(id="api", type="http", url="https://..."))
    item.start_monitoring()   # reports PENDING, then each probe result
    ...
    item.stop_monitoring()    # results from the stopped run are dropped
"""

from __future__ import annotations

import logging
import threading

from src.checklist.item import ChecklistItem
from src.checklist.severity import Severity

from .engine import ProbeResult, execute_probe
from .models import ProbeDef

logger = logging.getLogger(__name__)

CAMERA_PLACEHOLDER = "{camera_index}"

# How long stop_monitoring() waits for an in-flight probe before moving on
STOP_JOIN_TIMEOUT = 2.0


class ProbeItem(ChecklistItem):
    """Runs ``defn`` every ``interval_seconds`` while monitoring."""

    def __init__(self, defn: ProbeDef) -> None:
        super().__init__(defn.label, Severity.PENDING, "Not checked yet")
        self.defn = defn
        self.supports_camera_index = CAMERA_PLACEHOLDER in defn.url
        self.last_result: ProbeResult | None = None
        self._camera_index = 0
        self._run_lock = threading.Lock()
        self._generation = 0
        self._wake: threading.Event | None = None
        self._thread: threading.Thread | None = None

    # -- configuration ---------------------------------------------------------

    @property
    def camera_index(self) -> int:
        return self._camera_index

    def set_preferred_camera_index(self, index: int) -> None:
        if index == self._camera_index:
            return
        self._camera_index = index
        with self._run_lock:
            wake = self._wake if self._monitoring else None
        if wake is not None:
            self._update(state=Severity.PENDING, description=f"Switching to camera {index}")
            wake.set()  # re-probe now

    def effective_def(self, camera_index: int | None = None) -> ProbeDef:
        """The definition with ``camera_index`` (default: current) substituted."""
        if not self.supports_camera_index:
            return self.defn
        index = self._camera_index if camera_index is None else camera_index
        url = self.defn.url.replace(CAMERA_PLACEHOLDER, str(index))
        return self.defn.model_copy(update={"url": url})

    # -- lifecycle ---------------------------------------------------------------

    def start_monitoring(self) -> None:
        with self._run_lock:
            if self._monitoring:
                return
            self._generation += 1
            self._wake = threading.Event()
            self._monitoring = True
            self._thread = threading.Thread(
                target=self._loop,
                args=(self._generation, self._wake),
                name=f"probe-{self.defn.id}",
                daemon=True,
            )
            thread = self._thread
        self._update(state=Severity.PENDING, description="Checking...")
        thread.start()
        logger.debug("Probe %s started (every %ss)", self.defn.id, self.defn.interval_seconds)

    def stop_monitoring(self) -> None:
        with self._run_lock:
            if not self._monitoring:
                return
            self._monitoring = False
            self._generation += 1
            wake, thread = self._wake, self._thread
            self._wake = self._thread = None
        if wake is not None:
            wake.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=STOP_JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning("Probe %s still finishing after stop", self.defn.id)
        logger.debug("Probe %s stopped", self.defn.id)

    def run_once(self, camera_index: int | None = None) -> ProbeResult:
        """Run the probe synchronously and return its result (not reported)."""
        try:
            return execute_probe(self.effective_def(camera_index))
        except Exception as e:
            logger.exception("Probe %s crashed", self.defn.id)
            return ProbeResult(Severity.ERROR, f"Probe crashed: {type(e).__name__}: {e}")

    # -- internals ---------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        with self._run_lock:
            return self._monitoring and generation == self._generation

    def _loop(self, generation: int, wake: threading.Event) -> None:
        while self._is_current(generation):
            camera_index = self._camera_index
            result = self.run_once(camera_index)
            if not self._is_current(generation):
                break
            if camera_index != self._camera_index:
                wake.clear()
                continue  # camera switched mid-probe; re-run against the new one
            self.last_result = result
            self._update(state=result.severity, description=result.description)
            logger.debug(
                "Probe %s: %s (%.0fms)", self.defn.id, result.severity.label, result.latency_ms,
            )
            wake.wait(self.defn.interval_seconds)
            wake.clear()
