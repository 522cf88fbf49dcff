import math
from typing import Sequence, TypeVar

T = TypeVar("T")


def profile_seed(profile_id: str) -> int:
    """Sum of the character codes of the id. The empty id seeds to 0."""
    return sum(ord(c) for c in profile_id)


class SeededRandom:
    """Reproducible draws keyed by a profile id and an integer offset.

    ``draw(offset) = frac(sin(seed + offset) * 10000)``. This is the same formula
    the dashboard used, so demo payloads match the ones it produced. The
    generator has no internal state: the same ``(profile_id, offset)`` always
    gives the same value, and instances are safe to share across threads.

    Callers give every distinct field its own offset so two fields of one
    profile never read the same draw.
    """

    __slots__ = ("profile_id", "seed")

    def __init__(self, profile_id: str):
        self.profile_id = profile_id
        self.seed = profile_seed(profile_id)

    def draw(self, offset: int = 0) -> float:
        x = math.sin(self.seed + offset) * 10000
        return x - math.floor(x)

    def rand_int(self, low: int, high: int, offset: int = 0) -> int:
        """Integer in [low, high], both bounds inclusive."""
        return math.floor(self.draw(offset) * (high - low + 1)) + low

    def pick(self, values: Sequence[T], offset: int = 0) -> T:
        if not values:
            raise ValueError("pick() requires a non-empty sequence")
        return values[self.rand_int(0, len(values) - 1, offset)]

    def __repr__(self) -> str:
        return f"SeededRandom(profile_id={self.profile_id!r}, seed={self.seed})"
