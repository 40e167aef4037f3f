"""
Run statistics for the scanner and their best-effort snapshot on disk
"""

import asyncio
import json
import logging
import os
import re
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_LOG_CAP = 400
_TAG_RE = re.compile(r'<[^>]*>')


def strip_tags(html: str) -> str:
    return _TAG_RE.sub('', html or '')


def _as_count(data: Dict, key: str) -> int:
    raw = data.get(key)
    if raw is None:
        return 0
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        logger.warning(f"Ignoring snapshot field {key}={raw!r}")
        return 0


class SnapshotWriter:
    """
    Write-behind JSON snapshot.

    Flush requests made while a write is pending are coalesced into a single
    write of the latest state. Failures are logged and swallowed.
    """

    def __init__(self, path: str, delay: float = 0.5):
        self.path = path
        self.delay = delay
        self._pending: Optional[asyncio.Task] = None
        self._source: Optional[Callable[[], Dict]] = None
        self.writes = 0

    def load(self) -> Optional[Dict]:
        if not self.path or not os.path.exists(self.path):
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return data if isinstance(data, dict) else None
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable stats snapshot {self.path}: {e}")
            return None

    def request_flush(self, source: Callable[[], Dict]):
        self._source = source
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.write_now()
            return
        if self._pending is None or self._pending.done():
            self._pending = loop.create_task(self._flush_later())

    async def _flush_later(self):
        await asyncio.sleep(self.delay)
        self.write_now()

    async def flush(self):
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            try:
                await self._pending
            except asyncio.CancelledError:
                pass
        self.write_now()

    def write_now(self):
        if not self.path or self._source is None:
            return
        tmp_path = f"{self.path}.tmp"
        try:
            payload = json.dumps(self._source(), indent=2)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
            self.writes += 1
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to persist stats snapshot to {self.path}: {e}")


class RunStatistics:
    """Scanner counters plus a bounded, most-recent-first alert/skip log"""

    def __init__(self, log_cap: int = DEFAULT_LOG_CAP, writer: Optional[SnapshotWriter] = None,
                 clock: Callable[[], float] = time.time):
        self.log_cap = log_cap
        self.writer = writer
        self.clock = clock
        self.scanned = 0
        self.alerts: List[str] = []
        self.wins = 0
        self.losses = 0
        self.last_error: Optional[str] = None
        self.last_run: Optional[int] = None
        self.scanner_on = False
        self._lock = threading.Lock()

    def restore(self, data: Optional[Dict]):
        """Restore counters from a snapshot; fields with the wrong type keep their defaults"""
        if not isinstance(data, dict) or not data:
            return
        alerts = data.get('alerts')
        last_error = data.get('lastError')
        with self._lock:
            self.scanned = _as_count(data, 'scanned')
            self.wins = _as_count(data, 'wins')
            self.losses = _as_count(data, 'losses')
            if isinstance(alerts, list):
                self.alerts = [str(a) for a in alerts][:self.log_cap]
            elif alerts is not None:
                logger.warning(f"Ignoring snapshot field alerts={alerts!r}")
            self.last_error = str(last_error) if last_error is not None else None
            last_run = _as_count(data, 'lastRun')
            self.last_run = last_run or None

    def snapshot(self) -> Dict:
        with self._lock:
            return {
                'scanned': self.scanned,
                'alerts': list(self.alerts),
                'wins': self.wins,
                'losses': self.losses,
                'scannerOn': self.scanner_on,
                'lastError': self.last_error,
                'lastRun': self.last_run,
            }

    def _changed(self):
        if self.writer is not None:
            self.writer.request_flush(self.snapshot)

    def record(self, text: str):
        """Prepend a timestamped entry, dropping the oldest past the cap"""
        stamp = datetime.fromtimestamp(self.clock(), tz=timezone.utc).isoformat().replace('+00:00', 'Z')
        with self._lock:
            self.alerts.insert(0, f"{stamp} | {text}")
            del self.alerts[self.log_cap:]
        self._changed()

    def increment_scanned(self):
        with self._lock:
            self.scanned += 1
        self._changed()

    def mark_result(self, result: str) -> bool:
        with self._lock:
            if result == 'win':
                self.wins += 1
            elif result == 'lose':
                self.losses += 1
            else:
                return False
        self._changed()
        return True

    def set_error(self, error: str):
        with self._lock:
            self.last_error = error
        self._changed()

    def mark_run(self):
        with self._lock:
            self.last_run = int(self.clock() * 1000)
        self._changed()

    def set_scanner_on(self, on: bool):
        with self._lock:
            self.scanner_on = on
        self._changed()
