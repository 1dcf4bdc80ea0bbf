"""
Multi-step flows without a cross-row transaction.

Each step is committed on its own. When a later step fails, the
compensations registered by the completed steps run in reverse order and the
original exception propagates to the caller.
"""
import logging
from typing import Any, Callable, List, Optional, Tuple


logger = logging.getLogger(__name__)


class Saga:
    def __init__(self, name: str, session=None, on_compensated: Optional[Callable[[], Any]] = None):
        self.name = name
        self.session = session
        self.on_compensated = on_compensated
        self._compensations: List[Tuple[str, Callable[[], Any]]] = []

    def step(self, label: str, action: Callable[[], Any], compensation: Optional[Callable[[], Any]] = None) -> Any:
        result = action()
        if compensation is not None:
            self._compensations.append((label, compensation))
        return result

    def compensate(self) -> None:
        if self.session is not None:
            # Discard whatever the failed step left pending before undoing committed ones
            self.session.rollback()
        while self._compensations:
            label, compensation = self._compensations.pop()
            try:
                compensation()
                logger.warning("saga %s: compensated step %s", self.name, label)
            except Exception:
                # Keep unwinding the remaining steps; the original error is what the caller sees
                logger.exception("saga %s: compensation for step %s failed", self.name, label)
        if self.on_compensated is not None:
            try:
                self.on_compensated()
            except Exception:
                logger.exception("saga %s: post-compensation hook failed", self.name)

    def __enter__(self) -> "Saga":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.compensate()
        return False
