"""Probe runners — the checks behind concrete checklist items.

Supports: HTTP(S), TLS cert expiry, DNS resolve, TCP connect, free disk
space, shell command. Every runner returns a ProbeResult and never raises;
failures become ERROR results.
"""

from __future__ import annotations

import shutil
import socket
import ssl
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from src.checklist.severity import Severity

# Latency budget before an otherwise healthy HTTP probe is downgraded
SLOW_HTTP_MS = 3000


@dataclass
class ProbeResult:
    """Outcome of a single probe execution."""

    severity: Severity
    description: str
    latency_ms: float = 0.0
    details: dict[str, Any] | None = None


def _elapsed_ms(t0: float) -> float:
    return round((time.perf_counter() - t0) * 1000, 1)


# ── Runners ──────────────────────────────────────────────────────────────────


def run_http_probe(
    url: str,
    method: str = "GET",
    expected_status: int = 200,
    timeout_ms: int = 10_000,
) -> ProbeResult:
    """HTTP(S) probe: status code and latency."""
    t0 = time.perf_counter()
    try:
        with httpx.Client(timeout=timeout_ms / 1000, follow_redirects=True) as client:
            resp = client.request(method, url)
        latency = _elapsed_ms(t0)

        if resp.status_code != expected_status:
            return ProbeResult(
                Severity.ERROR, f"Expected {expected_status}, got {resp.status_code}",
                latency, {"status_code": resp.status_code},
            )
        if latency > SLOW_HTTP_MS:
            return ProbeResult(
                Severity.WARNING, f"{resp.status_code} OK but slow ({latency:.0f}ms)",
                latency, {"status_code": resp.status_code},
            )
        return ProbeResult(
            Severity.SAFE, f"{resp.status_code} OK", latency, {"status_code": resp.status_code},
        )
    except httpx.TimeoutException:
        return ProbeResult(Severity.ERROR, f"Timed out ({timeout_ms}ms)", float(timeout_ms))
    except httpx.ConnectError as e:
        return ProbeResult(Severity.ERROR, f"Connection error: {e}", _elapsed_ms(t0))
    except Exception as e:
        return ProbeResult(Severity.ERROR, f"Error: {type(e).__name__}: {e}", _elapsed_ms(t0))


def run_tls_probe(
    hostname: str,
    port: int = 443,
    warn_days_before: int = 14,
    timeout_ms: int = 10_000,
) -> ProbeResult:
    """TLS certificate expiry probe."""
    t0 = time.perf_counter()
    try:
        ctx = ssl.create_default_context()
        with socket.create_connection((hostname, port), timeout=timeout_ms / 1000) as sock:
            with ctx.wrap_socket(sock, server_hostname=hostname) as ssock:
                cert = ssock.getpeercert()
        latency = _elapsed_ms(t0)

        if not cert:
            return ProbeResult(Severity.ERROR, "No certificate returned", latency)

        not_after = cert.get("notAfter", "")
        expiry = datetime.strptime(not_after, "%b %d %H:%M:%S %Y %Z").replace(tzinfo=timezone.utc)
        days_left = (expiry - datetime.now(timezone.utc)).days
        details = {"days_left": days_left, "expiry": expiry.isoformat()}

        if days_left < 0:
            return ProbeResult(Severity.ERROR, f"Certificate expired {-days_left} days ago", latency, details)
        if days_left < warn_days_before:
            return ProbeResult(Severity.WARNING, f"Certificate expires in {days_left} days", latency, details)
        return ProbeResult(Severity.SAFE, f"Certificate valid for {days_left} days", latency, details)
    except Exception as e:
        return ProbeResult(Severity.ERROR, f"TLS error: {type(e).__name__}: {e}", _elapsed_ms(t0))


def run_dns_probe(hostname: str) -> ProbeResult:
    """DNS resolution probe."""
    t0 = time.perf_counter()
    try:
        addrs = socket.getaddrinfo(hostname, None)
        ips = sorted({a[4][0] for a in addrs})
        return ProbeResult(
            Severity.SAFE, f"Resolved to {', '.join(ips[:3])}", _elapsed_ms(t0), {"ips": ips},
        )
    except socket.gaierror as e:
        return ProbeResult(Severity.ERROR, f"DNS resolution failed: {e}", _elapsed_ms(t0))
    except Exception as e:
        return ProbeResult(Severity.ERROR, f"DNS error: {type(e).__name__}: {e}", _elapsed_ms(t0))


def run_tcp_probe(hostname: str, port: int = 443, timeout_ms: int = 5_000) -> ProbeResult:
    """Raw TCP port connectivity probe."""
    t0 = time.perf_counter()
    try:
        with socket.create_connection((hostname, port), timeout=timeout_ms / 1000):
            pass
        return ProbeResult(Severity.SAFE, f"Port {port} open", _elapsed_ms(t0))
    except Exception as e:
        return ProbeResult(
            Severity.ERROR, f"TCP connect failed: {type(e).__name__}: {e}", _elapsed_ms(t0),
        )


def run_disk_probe(path: str, min_free_mb: int = 512, warn_free_mb: int = 2048) -> ProbeResult:
    """Free storage probe. ERROR below ``min_free_mb``, WARNING below ``warn_free_mb``."""
    t0 = time.perf_counter()
    try:
        usage = shutil.disk_usage(path)
    except OSError as e:
        return ProbeResult(Severity.ERROR, f"Storage unavailable: {e}", _elapsed_ms(t0))

    free_mb = usage.free // (1024 * 1024)
    details = {"free_mb": free_mb, "total_mb": usage.total // (1024 * 1024)}
    if free_mb < min_free_mb:
        return ProbeResult(Severity.ERROR, f"Only {free_mb} MB free", _elapsed_ms(t0), details)
    if free_mb < warn_free_mb:
        return ProbeResult(Severity.WARNING, f"Low storage: {free_mb} MB free", _elapsed_ms(t0), details)
    return ProbeResult(Severity.SAFE, f"{free_mb} MB free", _elapsed_ms(t0), details)


def run_command_probe(command: str, timeout_ms: int = 30_000) -> ProbeResult:
    """Shell command probe; exit code 0 is SAFE, anything else ERROR."""
    t0 = time.perf_counter()
    try:
        proc = subprocess.run(
            command, shell=True, capture_output=True, text=True, timeout=timeout_ms / 1000,
        )
    except subprocess.TimeoutExpired:
        return ProbeResult(Severity.ERROR, f"Command timed out ({timeout_ms}ms)", float(timeout_ms))
    except Exception as e:
        return ProbeResult(Severity.ERROR, f"Command error: {type(e).__name__}: {e}", _elapsed_ms(t0))

    output = (proc.stdout or proc.stderr).strip().splitlines()
    summary = output[-1][:200] if output else ""
    if proc.returncode == 0:
        return ProbeResult(Severity.SAFE, summary or "Command succeeded", _elapsed_ms(t0))
    return ProbeResult(
        Severity.ERROR, summary or f"Command exited with {proc.returncode}", _elapsed_ms(t0),
        {"exit_code": proc.returncode},
    )


# Dispatcher
PROBE_RUNNERS = {
    "http": lambda d: run_http_probe(d.url, d.method, d.expected_status, d.timeout_ms),
    "tls": lambda d: run_tls_probe(d.hostname, d.port or 443, d.warn_days_before, d.timeout_ms),
    "dns": lambda d: run_dns_probe(d.hostname),
    "tcp": lambda d: run_tcp_probe(d.hostname, d.port or 443, d.timeout_ms),
    "disk": lambda d: run_disk_probe(d.path, d.min_free_mb, d.warn_free_mb),
    "command": lambda d: run_command_probe(d.command, d.timeout_ms),
}


def execute_probe(defn: Any) -> ProbeResult:
    """Run a probe definition by type."""
    runner = PROBE_RUNNERS.get(defn.type)
    if not runner:
        return ProbeResult(Severity.ERROR, f"Unknown probe type: {defn.type}")
    return runner(defn)
