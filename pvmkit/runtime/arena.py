"""
Per-invocation bump arena.

Each host frame owns one arena. Entry points reset it before doing
anything else, so nothing allocated in one invocation survives into the
next. Memory is never freed individually.
"""
from typing import Optional

ARENA_SIZE = 32 * 1024

# largest call input an invocation reads; longer input is truncated
MAX_INPUT_SIZE = 8 * 1024

# largest storage value an invocation reads
MAX_VALUE_SIZE = 16 * 1024


class Arena:
    def __init__(self, capacity: int = ARENA_SIZE):
        self.capacity = capacity
        self._buffer = bytearray(capacity)
        self._offset = 0

    @property
    def used(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return self.capacity - self._offset

    def alloc(self, size: int, align: int = 1) -> Optional[memoryview]:
        """
        Bump-allocate ``size`` bytes aligned to ``align`` (a power of two).
        Returns ``None`` when the arena cannot satisfy the request.
        """
        assert align > 0 and align & (align - 1) == 0, align
        start = (self._offset + align - 1) & ~(align - 1)
        end = start + size
        if end > self.capacity:
            return None
        self._offset = end
        return memoryview(self._buffer)[start:end]

    def reset(self) -> None:
        self._offset = 0

    def __repr__(self):
        return f"Arena(used={self.used}, capacity={self.capacity})"
