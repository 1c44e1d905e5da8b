"""
Thread-safe in-memory metrics for the API.

Per route:
  - Traffic: requests.<route>
  - Errors:  errors.<route>.<ErrorClass>
  - Latency: last MAX_SAMPLES durations in milliseconds

All data is ephemeral and resets on restart.
"""

import time
import threading
from typing import Dict, List
from collections import defaultdict

_lock = threading.Lock()

_counters: Dict[str, int] = defaultdict(int)

_latency_samples: Dict[str, List[float]] = defaultdict(list)
MAX_SAMPLES = 100

_recent_errors: List[dict] = []
MAX_ERRORS = 50

_started_at = time.time()


def inc_counter(name: str, amount: int = 1):
    """Increment a counter (e.g. 'requests.restore', 'errors.upload.UpstreamFailure')."""
    with _lock:
        _counters[name] += amount


def record_latency(route: str, duration_ms: float):
    """Record a latency sample in milliseconds."""
    with _lock:
        samples = _latency_samples[route]
        samples.append(duration_ms)
        if len(samples) > MAX_SAMPLES:
            _latency_samples[route] = samples[-MAX_SAMPLES:]


def record_error(route: str, error_type: str, message: str):
    """Count an error and keep it in the recent-errors log."""
    with _lock:
        _counters[f"errors.{route}.{error_type}"] += 1
        _recent_errors.append({
            "timestamp": time.time(),
            "route": route,
            "error_type": error_type,
            "message": message[:300],
        })
        if len(_recent_errors) > MAX_ERRORS:
            _recent_errors.pop(0)


def _percentiles(samples: List[float]) -> dict:
    sorted_s = sorted(samples)
    n = len(sorted_s)
    return {
        "p50": sorted_s[n // 2],
        "p95": sorted_s[int(n * 0.95)] if n >= 20 else sorted_s[-1],
        "p99": sorted_s[int(n * 0.99)] if n >= 100 else sorted_s[-1],
        "avg": sum(sorted_s) / n,
        "count": n,
    }


def get_snapshot() -> dict:
    """Return a complete metrics snapshot for the /metrics endpoint."""
    now = time.time()
    with _lock:
        return {
            "timestamp": now,
            "counters": dict(_counters),
            "latency": {
                route: _percentiles(samples)
                for route, samples in _latency_samples.items()
                if samples
            },
            "recent_errors": list(_recent_errors[-10:]),
            "uptime_seconds": now - _started_at,
        }


def reset():
    """Clear all collected data."""
    global _started_at
    with _lock:
        _counters.clear()
        _latency_samples.clear()
        _recent_errors.clear()
        _started_at = time.time()
