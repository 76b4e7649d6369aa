from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

import numpy as np

from .errors import DimensionMismatch, LossEmbeddingError

__all__ = [
    "ModeOccupation", "Subset", "Partition",
    "all_mode_configurations", "fock_to_indices", "modes_to_fock",
]


# ──────────────────────────────────────────────────────────
# Fock utilities
# ──────────────────────────────────────────────────────────
def all_mode_configurations(M: int, N: int) -> Iterator[tuple[int, ...]]:
    """
    Generate all ways to distribute N photons into M modes.

    Yields tuples of length M, each summing to N, representing photon counts per mode.

    Parameters:
        M (int): Number of modes.
        N (int): Total photons.

    Yields:
        tuple[int, ...]: One distribution per iteration.
    """
    if M == 0:
        if N == 0:
            yield ()
        return
    if M == 1:
        yield (N,)
        return
    # Iterative stack avoids Python call-overhead
    stack = [(0, [])]  # (k, prefix)
    while stack:
        k, prefix = stack.pop()
        if len(prefix) == M - 1:
            yield tuple(prefix) + (N - k,)
        else:
            for next_k in range(N - k, -1, -1):  # reverse keeps lexicographic order
                stack.append((k + next_k, prefix + [next_k]))


def fock_to_indices(fock: Sequence[int]) -> list[int]:
    """
    Flatten a Fock vector into a list of mode indices.

    Example: [2,1,0] -> [0,0,1]
    """
    idx = []
    for m, c in enumerate(fock):
        idx.extend([m] * int(c))
    return idx


def modes_to_fock(mode_indices: Iterable[int], m: int) -> np.ndarray:
    """
    Convert a list of single-photon mode indices to a Fock vector of length m.

    E.g. [0,2,2] -> [1,0,2,...].
    """
    return np.bincount(np.asarray(list(mode_indices), dtype=int), minlength=m)


# ──────────────────────────────────────────────────────────
# Mode occupations
# ──────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ModeOccupation:
    """
    Photon counts per mode.

    ``lossy`` marks occupations produced by :meth:`to_lossy`, whose second
    half are environment modes.
    """
    state: tuple[int, ...]
    lossy: bool = False

    def __post_init__(self):
        values = []
        for v in self.state:
            if int(v) != v:
                raise ValueError(f"mode occupations must be integers, got {v!r}")
            if v < 0:
                raise ValueError(f"mode occupations must be non-negative, got {v!r}")
            values.append(int(v))
        object.__setattr__(self, "state", tuple(values))

    @classmethod
    def from_mode_indices(cls, mode_indices: Iterable[int], m: int) -> "ModeOccupation":
        return cls(tuple(modes_to_fock(mode_indices, m)))

    @property
    def m(self) -> int:
        return len(self.state)

    @property
    def n(self) -> int:
        return sum(self.state)

    def __len__(self) -> int:
        return len(self.state)

    def __iter__(self) -> Iterator[int]:
        return iter(self.state)

    def __getitem__(self, item):
        return self.state[item]

    def __add__(self, other: "ModeOccupation") -> "ModeOccupation":
        if not isinstance(other, ModeOccupation):
            return NotImplemented
        if other.m != self.m:
            raise DimensionMismatch(
                f"cannot add occupations over {self.m} and {other.m} modes")
        if self.lossy != other.lossy:
            raise LossEmbeddingError("cannot add a lossy and a lossless occupation")
        return ModeOccupation(tuple(a + b for a, b in zip(self.state, other.state)),
                              lossy=self.lossy)

    def concatenate(self, other: "ModeOccupation") -> "ModeOccupation":
        """
        Occupation over ``self.m + other.m`` modes, ``self`` first.

        Lossy occupations cannot be concatenated: the result would no longer
        keep its environment modes in the second half.
        """
        if self.lossy or other.lossy:
            raise LossEmbeddingError("cannot concatenate lossy occupations")
        return ModeOccupation(self.state + tuple(other.state))

    def indices(self) -> list[int]:
        """One mode index per photon, see :func:`fock_to_indices`."""
        return fock_to_indices(self.state)

    def factorial_product(self) -> int:
        return math.prod(math.factorial(c) for c in self.state)

    def to_numpy(self) -> np.ndarray:
        return np.asarray(self.state, dtype=int)

    def to_lossy(self) -> "ModeOccupation":
        """Pad with ``m`` empty environment modes."""
        if self.lossy:
            raise LossEmbeddingError(f"{type(self).__name__} is already lossy")
        return type(self)(self.state + (0,) * self.m, lossy=True)


@dataclass(frozen=True)
class Subset(ModeOccupation):
    """Modes marked 1 belong to the region of interest."""

    def __post_init__(self):
        super().__post_init__()
        bad = [v for v in self.state if v not in (0, 1)]
        if bad:
            raise ValueError(f"subset entries must be 0 or 1, got {bad[0]}")

    @classmethod
    def from_modes(cls, m: int, modes: Iterable[int]) -> "Subset":
        state = [0] * m
        for mode in modes:
            if not 0 <= mode < m:
                raise DimensionMismatch(f"mode {mode} outside 0..{m - 1}")
            state[mode] = 1
        return cls(tuple(state))

    @property
    def modes(self) -> tuple[int, ...]:
        return tuple(i for i, v in enumerate(self.state) if v)

    def count(self, occupation: ModeOccupation) -> int:
        """Number of photons of ``occupation`` inside this subset."""
        if occupation.m != self.m:
            raise DimensionMismatch(
                f"subset over {self.m} modes, occupation over {occupation.m}")
        return sum(c for c, v in zip(occupation.state, self.state) if v)


class Partition:
    """
    Ordered collection of disjoint subsets defining photon-counting bins.

    The subsets need not cover every mode; see :attr:`is_complete`.
    """

    def __init__(self, subsets: Sequence[Subset], lossy: bool = False):
        subsets = tuple(subsets)
        if not subsets:
            raise ValueError("a partition needs at least one subset")
        m = subsets[0].m
        for s in subsets:
            if s.m != m:
                raise DimensionMismatch(
                    f"partition subsets span {m} and {s.m} modes")
        used = np.zeros(m, dtype=int)
        for s in subsets:
            used += s.to_numpy()
        if np.any(used > 1):
            raise ValueError("partition subsets must be disjoint")
        self.subsets = subsets
        self.m = m
        self.lossy = lossy

    @classmethod
    def from_mode_groups(cls, m: int, groups: Iterable[Iterable[int]]) -> "Partition":
        """E.g. ``Partition.from_mode_groups(4, [[0, 1], [2, 3]])``."""
        return cls([Subset.from_modes(m, g) for g in groups])

    @property
    def n_subsets(self) -> int:
        return len(self.subsets)

    @property
    def is_complete(self) -> bool:
        covered = sum(len(s.modes) for s in self.subsets)
        return covered == self.m

    def counts(self, occupation: ModeOccupation) -> tuple[int, ...]:
        """Bin-count tuple of ``occupation``."""
        return tuple(s.count(occupation) for s in self.subsets)

    def to_lossy(self) -> "Partition":
        """Pad every subset and append the environment bin."""
        if self.lossy:
            raise LossEmbeddingError("Partition is already lossy")
        padded = [Subset(s.state + (0,) * self.m, lossy=True) for s in self.subsets]
        environment = Subset((0,) * self.m + (1,) * self.m, lossy=True)
        return Partition(padded + [environment], lossy=True)

    def __len__(self) -> int:
        return len(self.subsets)

    def __iter__(self) -> Iterator[Subset]:
        return iter(self.subsets)

    def __eq__(self, other):
        if not isinstance(other, Partition):
            return NotImplemented
        return self.subsets == other.subsets and self.lossy == other.lossy

    def __hash__(self):
        return hash((self.subsets, self.lossy))

    def __repr__(self):
        groups = [list(s.modes) for s in self.subsets]
        return f"Partition(m={self.m}, groups={groups})"
