"""Call counters for engine functions.

Counts live in memory. When ``TRACKING_FILE`` names a JSON file, earlier
counts are loaded from it at import and every increment is written back.
"""

from __future__ import annotations

import json
import os
import threading
from collections import Counter
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Dict, Optional

_LOCK = threading.RLock()
_COUNTS: Counter = Counter()
_SINK: Optional[Path] = None


def _read_sink(path: Path) -> Dict[str, int]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    if not isinstance(payload, dict):
        return {}

    restored: Dict[str, int] = {}
    for name, raw in payload.items():
        try:
            restored[str(name)] = max(int(raw), 0)
        except (TypeError, ValueError):
            continue
    return restored


def _write_sink_locked(path: Path) -> None:
    scratch: Optional[Path] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, suffix=".tmp", delete=False
        ) as handle:
            scratch = Path(handle.name)
            json.dump(dict(_COUNTS), handle, sort_keys=True)
        scratch.replace(path)
    except OSError:
        if scratch is not None and scratch.exists():
            scratch.unlink()


def configure(path: Optional[str]) -> None:
    """Point the counters at ``path`` (``None`` keeps them in memory only)."""
    global _SINK

    with _LOCK:
        _SINK = Path(path) if path else None
        if _SINK is not None:
            for name, count in _read_sink(_SINK).items():
                _COUNTS[name] = max(_COUNTS[name], count)


def t(func_name: str) -> None:
    """Count one execution of ``func_name``."""
    if not func_name:
        return

    with _LOCK:
        _COUNTS[func_name] += 1
        if _SINK is not None:
            _write_sink_locked(_SINK)


def call_counts() -> Dict[str, int]:
    with _LOCK:
        return dict(_COUNTS)


configure(os.getenv("TRACKING_FILE"))
