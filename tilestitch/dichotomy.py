"""Bisection searches used to discover the dimensions of an unknown image."""

from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass
class Dichotomy:
    """Search for the largest integer for which a test succeeds.

    The upper bound is unknown at first and grows geometrically.
    """

    min: int = 0
    max: int | None = None

    def best_guess(self) -> int:
        if self.max is not None:
            return (self.max + self.min) // 2
        return self.min * 3 + 1

    def next(self, previous_success: bool) -> int | None:
        """Record the outcome of the last guess; return the next guess, or None when done."""
        last_guess = self.best_guess()
        if previous_success:
            self.min = last_guess
        else:
            self.max = last_guess
        next_guess = self.best_guess()
        return next_guess if next_guess != last_guess else None


class _Phase(enum.Enum):
    DIAGONAL = enum.auto()
    ORIENTATION = enum.auto()
    LAST_DIM = enum.auto()


class Dichotomy2d:
    """Search for the largest (x, y) pair for which a test succeeds.

    First searches along the diagonal, then finds whether the area is
    landscape or portrait, then searches along the remaining dimension.
    """

    def __init__(self) -> None:
        self._phase = _Phase.DIAGONAL
        self._diagonal_search = Dichotomy()
        self._diagonal = 0
        self._is_landscape = False
        self._last_dim = Dichotomy()

    def next(self, previous_success: bool) -> tuple[int, int] | None:
        """Record the outcome of the last guess; return the next guess, or None when done."""
        if self._phase is _Phase.DIAGONAL:
            guess = self._diagonal_search.next(previous_success)
            if guess is not None:
                return guess, guess
            self._diagonal = self._diagonal_search.best_guess()
            self._phase = _Phase.ORIENTATION
            return self._diagonal + 1, self._diagonal

        diagonal = self._diagonal
        if self._phase is _Phase.ORIENTATION:
            self._last_dim = Dichotomy(min=diagonal + (1 if previous_success else 0))
            self._is_landscape = previous_success
            self._phase = _Phase.LAST_DIM
            best = self._last_dim.best_guess()
            return (best, diagonal) if previous_success else (diagonal, best)

        guess = self._last_dim.next(previous_success)
        if guess is None:
            return None
        return (guess, diagonal) if self._is_landscape else (diagonal, guess)