"""External effects of a mutating call and their undo journal.

The pool never owns balances itself: reserve-asset transfers and token
mint/burn go through the capabilities in `src.core.interfaces`. Every effect
executed during a call is recorded so that a failure later in the same call
can reverse it.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List

from ..errors import ReentrantCallError
from ..interfaces import MintBurnToken, ReserveAsset

log = logging.getLogger(__name__)


class EffectJournal:
    """Executes effects in order and can undo them in reverse order."""

    def __init__(self) -> None:
        self._undo: List[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._undo)

    def record(self, undo: Callable[[], None]) -> None:
        """Register the undo step of an effect the caller already executed."""
        self._undo.append(undo)

    def transfer(self, asset: ReserveAsset, sender: str, recipient: str, amount: int) -> None:
        if amount == 0:
            return
        asset.transfer(sender, recipient, amount)
        self._undo.append(lambda: asset.transfer(recipient, sender, amount))

    def mint(self, token: MintBurnToken, to: str, amount: int) -> None:
        token.mint(to, amount)
        self._undo.append(lambda: token.burn(to, amount))

    def burn(self, token: MintBurnToken, from_: str, amount: int) -> None:
        token.burn(from_, amount)
        self._undo.append(lambda: token.mint(from_, amount))

    def rollback(self) -> None:
        """Undo recorded effects, newest first. An undo failure propagates."""
        if self._undo:
            log.debug("rolling back %d effect(s)", len(self._undo))
        while self._undo:
            self._undo.pop()()


class GuardedSection:
    """Per-instance lock plus single-entry flag around mutating calls.

    Other threads wait on the lock. A call that re-enters from the same thread
    (e.g. through a token or asset callback) fails with `ReentrantCallError`.
    On any exception the journal is rolled back before the error propagates.
    """

    def __init__(self, owner: str) -> None:
        self._owner = owner
        self._lock = threading.RLock()
        self._entered = False

    @property
    def active(self) -> bool:
        return self._entered

    @contextmanager
    def enter(self, action: str) -> Iterator[EffectJournal]:
        with self._lock:
            if self._entered:
                raise ReentrantCallError(f"reentrant call to {action} on {self._owner}")
            self._entered = True
            journal = EffectJournal()
            try:
                yield journal
            except Exception as exc:
                journal.rollback()
                log.warning("%s: %s rejected: %s", self._owner, action, exc)
                raise
            finally:
                self._entered = False
