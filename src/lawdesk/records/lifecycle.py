# src/lawdesk/records/lifecycle.py

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import fields as dataclass_fields, replace
from enum import Enum
from typing import Any, Generic, TypeVar

from ..core.errors import NotFound, NotFoundOrAlreadyInState, PreconditionViolation
from ..core.ports import Clock, RecordRepo
from .models import PROTECTED_FIELDS, Entity, Visibility

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class LifecycleStore(Generic[E]):
    """
    In-memory collection of one entity kind with the trash/archive state machine.

    Transitions:
      active   --soft_delete-->    trashed  (archive flag kept)
      archived --soft_delete-->    trashed  (archive flag kept)
      trashed  --restore-->        active or archived, depending on the kept flag
      active   <--toggle_archive--> archived
      trashed  --permanently_delete--> gone

    Thread-safety:
    - a per-id lock makes "check precondition + apply transition" atomic
    - the collection lock guards the id -> entity map; hold it via locked()
      to read several stores at one logical instant

    Records are immutable; each transition swaps in a replaced copy, so a
    snapshot taken earlier never changes under the caller.
    """

    def __init__(
        self,
        kind: str,
        *,
        clock: Clock,
        repo: RecordRepo | None = None,
        entities: Iterable[E] = (),
    ) -> None:
        self.kind = str(kind)
        self._clock = clock
        self._repo = repo
        self._items: dict[str, E] = {}
        self._lock = threading.RLock()
        self._id_locks: dict[str, _IdLock] = {}
        for e in entities:
            if e.id in self._items:
                raise ValueError(f"duplicate {self.kind} id {e.id}")
            self._items[e.id] = e

    @classmethod
    def from_repo(cls, kind: str, *, clock: Clock, repo: RecordRepo) -> LifecycleStore[Any]:
        store: LifecycleStore[Any] = cls(kind, clock=clock, repo=repo, entities=repo.load_records(kind))
        logger.info("LifecycleStore ready kind=%s total=%s", kind, len(store))
        return store

    # ---- low-level helpers ----

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    @contextlib.contextmanager
    def _entity_lock(self, entity_id: str) -> Iterator[None]:
        """
        Per-id lock, reference counted.

        The entry is dropped when the last holder leaves and the id is not
        stored, so lookups of unknown ids do not grow the table.
        """
        with self._lock:
            slot = self._id_locks.get(entity_id)
            if slot is None:
                slot = self._id_locks[entity_id] = _IdLock()
            slot.users += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._lock:
                slot.users -= 1
                if slot.users == 0 and entity_id not in self._items:
                    self._id_locks.pop(entity_id, None)

    def _commit(self, entity: E) -> E:
        if self._repo is not None:
            self._repo.save_record(self.kind, entity)
        with self._lock:
            self._items[entity.id] = entity
        return entity

    def _transition(
        self,
        entity_id: str,
        operation: str,
        check: Callable[[E], str | None],
        apply: Callable[[E], E],
    ) -> E:
        with self._entity_lock(entity_id):
            current = self.find(entity_id)
            if current is None:
                logger.debug("%s %s: %s not found", operation, self.kind, entity_id)
                raise NotFoundOrAlreadyInState(self.kind, entity_id, operation, "not found")
            problem = check(current)
            if problem is not None:
                logger.debug("%s %s %s rejected: %s", operation, self.kind, entity_id, problem)
                raise _problem_error(self.kind, entity_id, operation, problem)
            return self._commit(apply(current))

    # ---- read API ----

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        with self._lock:
            return entity_id in self._items

    def find(self, entity_id: str) -> E | None:
        """Weak-reference lookup: a miss means the entity no longer exists."""
        with self._lock:
            return self._items.get(entity_id)

    def get(self, entity_id: str) -> E:
        entity = self.find(entity_id)
        if entity is None:
            raise NotFound(self.kind, entity_id)
        return entity

    def snapshot(self) -> list[E]:
        with self._lock:
            return list(self._items.values())

    def list_by_visibility(self, visibility: Visibility) -> list[E]:
        """Entities in the given visibility state, in insertion order."""
        return [e for e in self.snapshot() if e.visibility is visibility]

    def visibility_of(self, entity_id: str) -> Visibility:
        return self.get(entity_id).visibility

    # ---- CRUD ----

    def add(self, entity: E) -> E:
        with self._entity_lock(entity.id):
            if entity.id in self:
                raise ValueError(f"duplicate {self.kind} id {entity.id}")
            if entity.created_at is None:
                entity = replace(entity, created_at=self._clock.now())
            self._commit(entity)
        logger.info("Added %s %s", self.kind, entity.id)
        return entity

    def edit(self, entity_id: str, **fields: Any) -> E:
        """
        Change ordinary fields.

        Visibility flags only move through the transitions below, and a task's
        update thread only grows through the update log. Enum fields accept
        their raw values ("done") and are stored as members.
        """
        blocked = PROTECTED_FIELDS.intersection(fields)
        if blocked:
            raise ValueError(f"cannot edit protected fields: {', '.join(sorted(blocked))}")
        with self._entity_lock(entity_id):
            current = self.get(entity_id)
            known = {f.name for f in dataclass_fields(current)}
            unknown = set(fields) - known
            if unknown:
                raise ValueError(f"unknown {self.kind} fields: {', '.join(sorted(unknown))}")
            coerced = {name: _coerce(getattr(current, name), value) for name, value in fields.items()}
            updated = self._commit(replace(current, **coerced))
        logger.debug("Edited %s %s fields=%s", self.kind, entity_id, sorted(fields))
        return updated

    def replace_entity(self, entity_id: str, fn: Callable[[E], E]) -> E:
        """
        Apply fn to the current record under the entity lock and store the result.

        Used by owners of per-entity data (the update log) that need the same
        atomicity as the lifecycle transitions.
        """
        with self._entity_lock(entity_id):
            current = self.get(entity_id)
            updated = fn(current)
            if updated.id != current.id:
                raise ValueError("replacement must keep the entity id")
            return self._commit(updated)

    # ---- lifecycle transitions ----

    def soft_delete(self, entity_id: str) -> E:
        entity = self._transition(
            entity_id,
            "soft_delete",
            lambda e: "already in trash" if e.is_deleted else None,
            lambda e: replace(e, is_deleted=True, deleted_at=self._clock.now()),
        )
        logger.info("Soft-deleted %s %s", self.kind, entity_id)
        return entity

    def restore(self, entity_id: str) -> E:
        entity = self._transition(
            entity_id,
            "restore",
            lambda e: None if e.is_deleted else "not in trash",
            lambda e: replace(e, is_deleted=False, deleted_at=None),
        )
        logger.info("Restored %s %s -> %s", self.kind, entity_id, entity.visibility.value)
        return entity

    def toggle_archive(self, entity_id: str) -> E:
        def _flip(e: E) -> E:
            if e.is_archived:
                return replace(e, is_archived=False, archived_at=None)
            return replace(e, is_archived=True, archived_at=self._clock.now())

        entity = self._transition(
            entity_id,
            "toggle_archive",
            lambda e: "cannot archive from trash" if e.is_deleted else None,
            _flip,
        )
        logger.info("Archive toggled %s %s -> %s", self.kind, entity_id, entity.visibility.value)
        return entity

    def permanently_delete(self, entity_id: str) -> None:
        """
        Remove a trashed entity for good. There is no undo.

        Other records that reference this id keep a dangling weak reference.
        """
        with self._entity_lock(entity_id):
            current = self.find(entity_id)
            if current is None:
                raise NotFoundOrAlreadyInState(self.kind, entity_id, "permanently_delete", "not found")
            if not current.is_deleted:
                raise PreconditionViolation(
                    self.kind, entity_id, "permanently_delete", "only trashed items can be purged"
                )
            if self._repo is not None:
                self._repo.delete_record(self.kind, entity_id)
            with self._lock:
                del self._items[entity_id]
        logger.info("Permanently deleted %s %s", self.kind, entity_id)


# Reasons where the entity already sits in the state the transition targets.
_ALREADY_IN_STATE = frozenset({"already in trash", "not in trash"})


def _problem_error(kind: str, entity_id: str, operation: str, reason: str) -> PreconditionViolation:
    if reason in _ALREADY_IN_STATE:
        return NotFoundOrAlreadyInState(kind, entity_id, operation, reason)
    return PreconditionViolation(kind, entity_id, operation, reason)


def _coerce(current: Any, value: Any) -> Any:
    # Raw values for enum fields become members; a bad value raises ValueError.
    if isinstance(current, Enum) and not isinstance(value, type(current)):
        return type(current)(value)
    return value


class _IdLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0
