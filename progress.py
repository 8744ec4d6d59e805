"""Shared search progress for the web modal, persisted for other processes.

``PROGRESS`` is guarded by ``PROGRESS_LOCK`` and written to ``STATE_FILE``
after every update; ``snapshot()`` reloads the file when another process
(a partition child, a second worker) has written it since. Notable events
also go to the ``search.attempt_log`` file logger as ``event | k=v`` lines.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from config import CFG

PROGRESS_LOCK = threading.Lock()


def _log_dir() -> Path:
    configured = Path(CFG.LOG_DIR or "logs")
    if configured.is_absolute():
        return configured
    return Path(__file__).resolve().parent / configured


def _state_file_path() -> Path:
    configured = os.environ.get("PROGRESS_STATE_FILE")
    return Path(configured) if configured else _log_dir() / "progress_state.json"


STATE_FILE = _state_file_path()
STATE_FILE_TMP = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
_LAST_STATE_MTIME: float = 0.0


def _attempt_logger() -> logging.Logger:
    logger = logging.getLogger("search.attempt_log")
    if logger.handlers:
        return logger
    try:
        path = _log_dir() / "search_attempts.log"
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return logger
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


ATTEMPT_LOGGER = _attempt_logger()


def log_attempt_detail(event: str, **fields: Any) -> None:
    """Write one ``event | key=value ...`` line; empty fields are left out."""
    if not ATTEMPT_LOGGER.handlers:
        return
    extras = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None and v != "")
    if extras:
        ATTEMPT_LOGGER.info("%s | %s", event, extras)
    else:
        ATTEMPT_LOGGER.info("%s", event)


_DEFAULTS: Dict[str, Any] = {
    "status": "Idle",       # Idle | Searching | Solved | Error
    "board": "",            # rectangle | pyramid
    "range": "",            # "A[0] .. end"
    "path": "",             # committed entries of the current branch
    "depth": 0,
    "nodes": 0,             # candidates tried
    "solutions": 0,
    "percent": 0.0,         # floor cursor through its range, 0..100
    "elapsed_start": None,
    "elapsed": 0.0,
    "message": "",
    "done": False,
    "ok": None,
    "result_url": "",
}

PROGRESS: Dict[str, Any] = dict(_DEFAULTS, run_id=0)
_RUN_START: Optional[float] = None


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        with STATE_FILE_TMP.open("w", encoding="utf-8") as fh:
            json.dump(PROGRESS, fh, ensure_ascii=False, separators=(",", ":"))
        STATE_FILE_TMP.replace(STATE_FILE)
        _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
    except (OSError, TypeError, ValueError):
        pass


def _load_persisted_locked(force: bool = False) -> None:
    global _LAST_STATE_MTIME
    try:
        mtime = STATE_FILE.stat().st_mtime
        if not force and mtime <= _LAST_STATE_MTIME:
            return
        with STATE_FILE.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        return
    if isinstance(data, dict):
        PROGRESS.update({k: data[k] for k in PROGRESS if k in data})
        _LAST_STATE_MTIME = mtime


def _tick_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = time.time() - float(t0)


@contextmanager
def _updating() -> Iterator[Dict[str, Any]]:
    with PROGRESS_LOCK:
        yield PROGRESS
        _persist_locked()


def _count(v: Any) -> int:
    try:
        return max(0, int(v))
    except (TypeError, ValueError):
        return 0


def _text(v: Any) -> str:
    return "" if v is None else str(v)


def _clock(seconds: float) -> str:
    seconds = int(max(0.0, float(seconds)))
    m, s = divmod(seconds, 60)
    h, m = divmod(m, 60)
    if h:
        return f"{h}h {m}m"
    return f"{m}m {s}s" if m else f"{s}s"


def reset() -> None:
    global _RUN_START
    with _updating() as p:
        run_id = _count(p.get("run_id")) + 1
        p.update(_DEFAULTS, run_id=run_id)
        _RUN_START = None
        log_attempt_detail("Progress reset", run_id=run_id)


def start_timer() -> None:
    global _RUN_START
    with _updating() as p:
        _RUN_START = p["elapsed_start"] = time.time()
        p["elapsed"] = 0.0


def set_status(v: Any) -> None:
    with _updating() as p:
        p["status"] = str(v)


def set_board(kind: Any, search_range: Any = None) -> None:
    with _updating() as p:
        p["board"] = _text(kind)
        p["range"] = _text(search_range)


def set_search(path: Any = None, depth: Any = 0, nodes: Any = 0, solutions: Any = 0) -> None:
    with _updating() as p:
        p.update(path=_text(path), depth=_count(depth), nodes=_count(nodes), solutions=_count(solutions))
        _tick_locked()


def set_progress_pct(pct: Any) -> None:
    try:
        pct = float(pct)
    except (TypeError, ValueError):
        pct = 0.0
    with _updating() as p:
        p["percent"] = max(0.0, min(100.0, pct))
        _tick_locked()


def set_message(msg: Any) -> None:
    with _updating() as p:
        p["message"] = _text(msg)


def set_result_url(url: Any) -> None:
    with _updating() as p:
        p["result_url"] = _text(url)


def record_solution(index: Any, path: Any) -> None:
    with _updating() as p:
        p["solutions"] = max(_count(p.get("solutions")), _count(index))
        _tick_locked()
        log_attempt_detail("Solution found", index=index, path=path, elapsed=f"{p['elapsed']:.2f}s")


def set_done(ok: Any = None, *, reason: Any = None, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks the final status (``Solved`` / ``Error``); when omitted a
    run that never failed is reported as solved. ``message`` wins over
    ``reason`` for the note shown in the modal.
    """
    global _RUN_START
    note = message if message is not None else reason
    with _updating() as p:
        _tick_locked()
        if ok is not None:
            p["ok"] = bool(ok)
            p["status"] = "Solved" if ok else "Error"
        elif p.get("status") in ("", "Idle", "Searching", None):
            p["ok"] = True
            p["status"] = "Solved"
        if note is not None:
            p["message"] = str(note)
        p["percent"] = 100.0
        p["done"] = True
        duration = None if _RUN_START is None else f"{max(0.0, time.time() - _RUN_START):.2f}s"
        _RUN_START = None
        log_attempt_detail(
            "Run finished",
            status=p["status"], ok=p["ok"], duration=duration,
            nodes=p["nodes"], solutions=p["solutions"], message=p["message"],
        )


def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        _tick_locked()
        snap = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
    snap["elapsed_str"] = _clock(snap["elapsed"])
    return snap


as_json = snapshot


with PROGRESS_LOCK:
    _load_persisted_locked(force=True)
