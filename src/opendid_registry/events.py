"""EventLog — append-only record of registry events.

Every state change in the registry (document registration, status
transition, credential issuance, storage swap, upgrade) is published as a
:class:`RegistryEvent`. Events are appended as single JSON lines to the
configured log file, or to an in-memory buffer when no path is set, and
mirrored to the module logger.

Inside :meth:`EventLog.staged` events are held back and only published
when the block exits normally, so an operation that fails part-way emits
nothing.
"""
from __future__ import annotations

import contextlib
import datetime
import json
import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class RegistryEvent:
    """A single registry event.

    Parameters
    ----------
    name:
        Event name (e.g. ``"DIDCreated"``, ``"VCIssued"``).
    subject_id:
        Id of the record the event concerns (DID, VC id, schema id, ...).
    actor:
        Identity of the caller that triggered the event. Defaults to
        ``"system"`` for store-level events.
    details:
        Additional event payload.
    timestamp:
        UTC datetime of the event. Defaults to now.
    """

    name: str
    subject_id: str
    actor: str = "system"
    details: dict[str, object] = field(default_factory=dict)
    timestamp: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary suitable for JSON encoding."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "name": self.name,
            "subject_id": self.subject_id,
            "actor": self.actor,
            "details": self.details,
        }


class EventLog:
    """Append-only JSONL event log with transactional staging.

    Thread-safe. Each published event is appended as one JSON line to
    ``log_path`` (or to the in-memory buffer if no path is set).

    Parameters
    ----------
    log_path:
        Path to the JSONL log file. Parent directories are created
        automatically. If None, events are buffered in memory only.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._buffer: list[str] = []
        self._staged: list[RegistryEvent] = []
        self._stage_depth = 0
        self._lock = threading.RLock()

        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def publish(self, event: RegistryEvent) -> None:
        """Publish *event*, or stage it if a staged block is open."""
        with self._lock:
            if self._stage_depth:
                self._staged.append(event)
                return
            self._write(event)

    def emit(
        self,
        name: str,
        /,
        subject_id: str,
        actor: str = "system",
        **details: object,
    ) -> RegistryEvent:
        """Build and publish an event in one call.

        Returns
        -------
        RegistryEvent
            The event that was published (or staged).
        """
        event = RegistryEvent(
            name=name,
            subject_id=subject_id,
            actor=actor,
            details=dict(details),
        )
        self.publish(event)
        return event

    @contextlib.contextmanager
    def staged(self) -> Iterator[None]:
        """Hold events back until the block completes.

        Nested blocks publish only when the outermost one exits normally.
        If any block raises, every event staged since the outermost block
        opened is discarded and the exception propagates.
        """
        with self._lock:
            self._stage_depth += 1
            try:
                yield
            except BaseException:
                self._stage_depth -= 1
                if not self._stage_depth:
                    self._staged.clear()
                raise
            self._stage_depth -= 1
            if not self._stage_depth:
                pending = list(self._staged)
                self._staged.clear()
                for event in pending:
                    self._write(event)

    def _write(self, event: RegistryEvent) -> None:
        line = json.dumps(event.to_dict(), separators=(",", ":"), default=str)
        if self._log_path is not None:
            with self._log_path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        else:
            self._buffer.append(line)
        logger.info("%s %s actor=%s", event.name, event.subject_id, event.actor)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def drain_buffer(self) -> list[str]:
        """Return and clear the in-memory event buffer."""
        with self._lock:
            events = list(self._buffer)
            self._buffer.clear()
        return events

    def read_log(self, tail: int | None = None) -> list[dict[str, object]]:
        """Read published events in chronological order.

        Parameters
        ----------
        tail:
            If provided, return only the last *tail* events.
        """
        with self._lock:
            if self._log_path is None or not self._log_path.exists():
                lines = list(self._buffer)
            else:
                lines = self._log_path.read_text(encoding="utf-8").splitlines()

        parsed: list[dict[str, object]] = []
        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            try:
                parsed.append(json.loads(stripped))
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable event line: %r", stripped)

        if tail is not None:
            return parsed[-tail:]
        return parsed

    def names(self) -> list[str]:
        """Return the names of all published events, oldest first."""
        return [str(entry["name"]) for entry in self.read_log()]


__all__ = ["EventLog", "RegistryEvent"]
