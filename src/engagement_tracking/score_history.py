import numpy as np

class ScoreHistory:
    """
    Fixed-capacity circular buffer of recent scores.

    The arena is allocated once; appends overwrite the oldest slot once the
    buffer is full.
    """

    DEFAULT_CAPACITY = 30

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")

        self._arena: np.ndarray = np.zeros(capacity, dtype=np.float64)
        self._head: int = 0
        self._size: int = 0

    @property
    def capacity(self) -> int:
        return len(self._arena)

    def __len__(self) -> int:
        return self._size

    def append(self, score: float) -> None:
        self._arena[self._head] = score
        self._head = (self._head + 1) % self.capacity
        if self._size < self.capacity:
            self._size += 1

    def recent(self, n: int) -> np.ndarray:
        n = max(0, min(n, self._size))
        if n == 0:
            return np.empty(0, dtype=np.float64)

        indices = (self._head - n + np.arange(n)) % self.capacity
        return self._arena[indices]

    def clear(self) -> None:
        self._head = 0
        self._size = 0
