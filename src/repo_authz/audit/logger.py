"""Append-only JSONL trail of authorization decisions.

Every protocol phase can be recorded as one newline-delimited JSON record
carrying a UTC ISO-8601 timestamp, a session identifier, the request, the
user and the host decision.

Thread-safety is achieved with a threading.Lock so one trail can be shared
by every connection of a process.

Example
-------
>>> from pathlib import Path
>>> audit = AuditLogger(Path("/tmp/authz_audit.jsonl"))
>>> audit.log({"event": "authz_decision", "decision": "allow"})
>>> audit.count()
1
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from repo_authz.protocol.decision import PhaseOutcome
from repo_authz.requests.classifier import DavRequest

logger = logging.getLogger(__name__)


class AuditLogger:
    """Append-only JSONL decision log.

    Parameters
    ----------
    log_path:
        Path to the ``.jsonl`` file.  Parent directories are created on
        first write.
    session_id:
        Identifier stamped on every record; a random UUID by default.
    """

    def __init__(self, log_path: Path, session_id: str | None = None) -> None:
        self._log_path = log_path
        self._session_id: str = session_id or str(uuid.uuid4())
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def log(self, entry: dict[str, object]) -> None:
        """Append ``entry`` with ``timestamp`` and ``session_id`` stamped on."""
        record: dict[str, object] = {
            **entry,
            "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            "session_id": self._session_id,
        }
        self._write(record)

    def log_decision(
        self,
        request: DavRequest,
        user: str | None,
        outcome: PhaseOutcome,
    ) -> None:
        """Record the outcome of one protocol phase."""
        check = outcome.check
        self.log(
            {
                "event": "authz_decision",
                "phase": outcome.phase,
                "method": request.method.upper(),
                "uri": request.uri,
                "user": user,
                "source": check.source_label if check is not None else None,
                "destination": check.destination_label if check is not None else None,
                "decision": outcome.decision.value,
                "state": outcome.state.value,
                "reason": outcome.reason,
            }
        )

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def read_all(self) -> list[dict[str, object]]:
        """Return every record in file order (empty if the file is missing)."""
        return list(self._iter_records())

    def query(self, filters: dict[str, object]) -> list[dict[str, object]]:
        """Return records whose top-level fields equal every filter value."""
        return [
            record
            for record in self._iter_records()
            if all(record.get(k) == v for k, v in filters.items())
        ]

    def count(self) -> int:
        return sum(1 for _ in self._iter_records())

    def last_n(self, n: int) -> list[dict[str, object]]:
        records = list(self._iter_records())
        return records[-n:] if n > 0 else []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self, record: dict[str, object]) -> None:
        with self._lock:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(record, default=str) + "\n")

    def _iter_records(self) -> Iterator[dict[str, object]]:
        if not self._log_path.exists():
            return
        with self._lock:
            with self._log_path.open("r", encoding="utf-8") as fh:
                lines = fh.readlines()
        for number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed audit line %d in %s", number, self._log_path)

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def session_id(self) -> str:
        return self._session_id
