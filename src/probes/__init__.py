"""Probe-backed checklist items — HTTP, TLS, DNS, TCP, disk and command checks."""

from .engine import ProbeResult, execute_probe
from .items import ProbeItem
from .models import ProbeDef

__all__ = ["ProbeDef", "ProbeItem", "ProbeResult", "execute_probe"]
