"""Per-key guard against duplicate concurrent work within one process."""

import contextlib
from collections.abc import Iterator


class SingleFlight:
    """Track keys with work in progress.

    ``enter`` yields True for the first caller and False while that caller
    is still inside the block. The key is released on every exit path,
    including exceptions and task cancellation. Membership checks and
    updates happen without awaiting, so they are atomic on the event loop.
    """

    def __init__(self) -> None:
        self._active: set[str] = set()

    def is_active(self, key: str) -> bool:
        return key in self._active

    @contextlib.contextmanager
    def enter(self, key: str) -> Iterator[bool]:
        if key in self._active:
            yield False
            return
        self._active.add(key)
        try:
            yield True
        finally:
            self._active.discard(key)
