"""Pydantic models for probe definitions loaded from checklist.yaml."""

from __future__ import annotations

from pydantic import BaseModel, Field

PROBE_TYPES = ("http", "tls", "dns", "tcp", "disk", "command")


class ProbeDef(BaseModel):
    """Definition of a single probe-backed checklist item."""

    model_config = {"extra": "ignore"}

    id: str
    name: str = ""
    type: str = "http"  # http | tls | dns | tcp | disk | command
    url: str = ""  # may contain {camera_index}
    hostname: str = ""
    port: int = 0  # 0 = protocol default
    path: str = "."  # for disk probes
    method: str = "GET"
    expected_status: int = 200
    timeout_ms: int = Field(default=10_000, gt=0)
    interval_seconds: float = Field(default=60, gt=0)
    warn_days_before: int = 14  # for TLS probes
    min_free_mb: int = 512
    warn_free_mb: int = 2048
    command: str = ""

    @property
    def label(self) -> str:
        return self.name or self.id
