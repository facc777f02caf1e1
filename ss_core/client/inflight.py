# ss_core/client/inflight.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable

from ss_core.common.errors import DuplicateSubmissionError


class InFlightGuard:
    """
    Per-(command, entity) in-flight flags for one session. A second
    identical command while the first is awaiting its response is refused
    without issuing a request.
    """

    def __init__(self) -> None:
        self._active: set[tuple[Hashable, ...]] = set()

    def is_busy(self, *key: Hashable) -> bool:
        return tuple(key) in self._active

    @asynccontextmanager
    async def hold(self, *key: Hashable) -> AsyncIterator[None]:
        k = tuple(key)
        if k in self._active:
            raise DuplicateSubmissionError()
        self._active.add(k)
        try:
            yield
        finally:
            self._active.discard(k)
