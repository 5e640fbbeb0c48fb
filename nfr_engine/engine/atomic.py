"""All-or-nothing execution of engine operations."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from ..errors import ReentrantCall
from .ledger import Ledger

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Undo information for one in-flight operation.

    Ledger changes are undone by the ledger journal. External calls that
    already succeeded register a compensating call, run in reverse order on
    abort. Events are only published on commit.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self.events: list[Any] = []
        self._compensations: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []

    def emit(self, event: Any) -> None:
        self.events.append(event)

    def on_abort(self, fn: Callable[..., Any], *args: Any) -> None:
        self._compensations.append((fn, args))

    def compensate(self) -> None:
        for fn, args in reversed(self._compensations):
            try:
                fn(*args)
            except Exception:
                logger.exception(
                    "Compensation %s%s failed while aborting %s",
                    getattr(fn, "__name__", fn), args, self.operation,
                )


class AtomicGuard:
    """Re-entrancy lock plus rollback for the ledger it protects.

    Only one operation may be in flight; a nested entry raises
    ``ReentrantCall`` without touching the running operation.
    """

    def __init__(self, ledger: Ledger, event_log: list[Any]) -> None:
        self._ledger = ledger
        self._event_log = event_log
        self._active: UnitOfWork | None = None

    @property
    def locked(self) -> bool:
        return self._active is not None

    @contextmanager
    def atomic(self, operation: str) -> Iterator[UnitOfWork]:
        if self._active is not None:
            logger.warning(
                "Rejected re-entrant %s while %s is in flight",
                operation, self._active.operation,
            )
            raise ReentrantCall()

        uow = UnitOfWork(operation)
        self._ledger.begin()
        self._active = uow
        try:
            yield uow
        except BaseException as e:
            self._ledger.rollback()
            uow.compensate()
            logger.warning("%s aborted: %s", operation, e)
            raise
        else:
            self._ledger.commit()
            self._event_log.extend(uow.events)
            for event in uow.events:
                logger.info("Event %s", event)
        finally:
            self._active = None
