"""UndoJournal — per-transaction record of overwritten values.

While a journal is attached, the role table and every store note the
previous value of each key just before they write it. Rolling the journal
back replays those notes newest first. Undoing an operation therefore
costs time proportional to what the operation wrote, not to the size of
the registry.

Stored records are never mutated in place (writes replace them with a
fresh copy), so noting the previous object reference is enough.
"""
from __future__ import annotations

import contextlib
from collections.abc import Hashable, Iterator, MutableMapping, MutableSet
from typing import Any

_ABSENT = object()


class UndoJournal:
    """Undo log for one registry transaction.

    Example
    -------
    ::

        journal = UndoJournal()
        with journal.watching(store):
            store.register(document, submitter)
        journal.rollback()  # the document is gone again
    """

    def __init__(self) -> None:
        self._entries: list[tuple[str, Any, Any, Any]] = []
        self._watched: list[tuple[Journaled, UndoJournal | None]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def touched(self) -> list[Hashable]:
        """Return the keys, members and attribute names noted so far, oldest first."""
        return [key for _, _, key, _ in self._entries]

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_item(self, mapping: MutableMapping[Any, Any], key: Hashable) -> None:
        self._entries.append(("item", mapping, key, mapping.get(key, _ABSENT)))

    def record_member(self, members: MutableSet[Any], value: Hashable) -> None:
        self._entries.append(("member", members, value, value in members))

    def record_attr(self, owner: object, name: str) -> None:
        self._entries.append(("attr", owner, name, getattr(owner, name)))

    # ------------------------------------------------------------------
    # Attachment
    # ------------------------------------------------------------------

    def watch(self, target: "Journaled") -> None:
        """Attach to *target* until the enclosing :meth:`watching` block ends."""
        if any(watched is target for watched, _ in self._watched):
            return
        self._watched.append((target, target.attach_journal(self)))

    @contextlib.contextmanager
    def watching(self, *targets: "Journaled") -> Iterator["UndoJournal"]:
        for target in targets:
            self.watch(target)
        try:
            yield self
        finally:
            while self._watched:
                target, previous = self._watched.pop()
                target.attach_journal(previous)

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def rollback(self) -> None:
        """Put back every noted value, newest first, and empty the journal."""
        while self._entries:
            kind, target, key, previous = self._entries.pop()
            if kind == "item":
                if previous is _ABSENT:
                    target.pop(key, None)
                else:
                    target[key] = previous
            elif kind == "member":
                if previous:
                    target.add(key)
                else:
                    target.discard(key)
            else:
                setattr(target, key, previous)


class Journaled:
    """Mixin for objects whose writes an :class:`UndoJournal` can undo."""

    _journal: UndoJournal | None = None

    def attach_journal(self, journal: UndoJournal | None) -> UndoJournal | None:
        """Route write notes to *journal*; return the journal it replaces."""
        previous = self._journal
        self._journal = journal
        return previous

    def _note_item(self, mapping: MutableMapping[Any, Any], key: Hashable) -> None:
        if self._journal is not None:
            self._journal.record_item(mapping, key)

    def _note_member(self, members: MutableSet[Any], value: Hashable) -> None:
        if self._journal is not None:
            self._journal.record_member(members, value)

    def _note_attr(self, name: str) -> None:
        if self._journal is not None:
            self._journal.record_attr(self, name)


__all__ = ["Journaled", "UndoJournal"]
