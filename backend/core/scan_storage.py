"""
Scan history store: create / list / get.
- Backend: in-memory list, optionally persisted to JSON (data/scans.json).
- Capped: on create, the oldest scans are evicted once max_entries is exceeded.
- Records are AnalysisResult values; nothing is updated after create.
"""
import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import List, Optional

from core.config import get_scan_history_max, get_scan_store_path
from core.models.analysis import AnalysisResult, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


class ScanStore:
    """
    Newest-first scan history with evict-oldest retention.
    path=None keeps everything in memory (tests, ephemeral deployments).
    """

    def __init__(self, path: Optional[Path] = None, max_entries: Optional[int] = None):
        self._path = path
        self._max_entries = max(1, max_entries if max_entries is not None else get_scan_history_max())
        self._scans: List[AnalysisResult] = []
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
            self._scans = [AnalysisResult.from_dict(d) for d in data.get("scans", [])][: self._max_entries]
        except (OSError, ValueError) as e:
            logger.warning("SCAN_STORE load failed path=%s error=%s", self._path, e)

    def _save(self, scans: List[AnalysisResult]) -> None:
        """Atomic write: temp file, then os.replace."""
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({"scans": [s.to_dict() for s in scans], "version": "1.0"}, f, indent=2)
        os.replace(tmp, self._path)

    def create(self, record: AnalysisResult) -> AnalysisResult:
        """Assign id and created_at, insert newest-first and trim to max_entries in one step."""
        stored = record.stored(uuid.uuid4().hex, created_at=utc_now_iso())
        with self._lock:
            scans = [stored] + self._scans
            evicted = len(scans) - self._max_entries
            del scans[self._max_entries:]
            self._save(scans)
            self._scans = scans
        logger.info(
            "SCAN_STORE create id=%s risk=%s source=%s evicted=%d",
            stored.id, stored.risk_level.value, stored.source.value, max(0, evicted),
        )
        return stored

    def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[AnalysisResult]:
        """Most recent first."""
        with self._lock:
            return list(self._scans[: max(0, limit)])

    def get(self, scan_id: str) -> Optional[AnalysisResult]:
        with self._lock:
            for s in self._scans:
                if s.id == scan_id:
                    return s
        return None

    def __len__(self) -> int:
        return len(self._scans)


_default_store: Optional[ScanStore] = None


def get_scan_store() -> ScanStore:
    global _default_store
    if _default_store is None:
        _default_store = ScanStore(path=get_scan_store_path())
    return _default_store
