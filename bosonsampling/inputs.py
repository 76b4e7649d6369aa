from __future__ import annotations

from enum import Enum

import numpy as np

from .errors import DimensionMismatch, InvalidGramMatrix
from .fock import ModeOccupation
from .gram import GramMatrix

__all__ = ["Distinguishability", "Input"]


class Distinguishability(Enum):
    BOSONIC = "bosonic"
    PART_DIST = "partially_distinguishable"
    DISTINGUISHABLE = "distinguishable"


class Input:
    """
    Photon configuration entering the interferometer.

    Parameters:
        occupation (ModeOccupation | Sequence[int]): Photons per input mode.
        distinguishability (Distinguishability): Photon model.
        gram (GramMatrix, optional): Required for ``PART_DIST``. For the two
            extreme models it is derived automatically, and a supplied one
            must match the model.
    """

    def __init__(self, occupation, distinguishability: Distinguishability = Distinguishability.BOSONIC,
                 gram: GramMatrix | None = None):
        if not isinstance(occupation, ModeOccupation):
            occupation = ModeOccupation(tuple(occupation))
        distinguishability = Distinguishability(distinguishability)
        n = occupation.n

        if distinguishability is Distinguishability.BOSONIC:
            expected = GramMatrix.bosonic(n)
        elif distinguishability is Distinguishability.DISTINGUISHABLE:
            expected = GramMatrix.distinguishable(n)
        else:
            if gram is None:
                raise InvalidGramMatrix("partially distinguishable input needs a Gram matrix")
            expected = gram

        if gram is not None:
            if gram.n != n:
                raise DimensionMismatch(
                    f"Gram matrix is {gram.n}x{gram.n} for {n} photons")
            if not np.allclose(gram.matrix, expected.matrix):
                raise InvalidGramMatrix(
                    f"Gram matrix does not describe {distinguishability.value} photons")

        self._occupation = occupation
        self._distinguishability = distinguishability
        self._gram = expected

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def bosonic(cls, occupation) -> "Input":
        return cls(occupation, Distinguishability.BOSONIC)

    @classmethod
    def distinguishable(cls, occupation) -> "Input":
        return cls(occupation, Distinguishability.DISTINGUISHABLE)

    @classmethod
    def partially_distinguishable(cls, occupation, gram: GramMatrix) -> "Input":
        return cls(occupation, Distinguishability.PART_DIST, gram)

    @classmethod
    def one_parameter(cls, occupation, x: float) -> "Input":
        """Partially distinguishable photons with every overlap equal to ``x``."""
        occupation = occupation if isinstance(occupation, ModeOccupation) \
            else ModeOccupation(tuple(occupation))
        return cls(occupation, Distinguishability.PART_DIST,
                   GramMatrix.one_parameter(occupation.n, x))

    # ------------------------------------------------------------------
    @property
    def occupation(self) -> ModeOccupation:
        return self._occupation

    @property
    def distinguishability(self) -> Distinguishability:
        return self._distinguishability

    @property
    def gram(self) -> GramMatrix:
        return self._gram

    @property
    def m(self) -> int:
        return self._occupation.m

    @property
    def n(self) -> int:
        return self._occupation.n

    @property
    def lossy(self) -> bool:
        return self._occupation.lossy

    def photon_modes(self) -> list[int]:
        """Input mode of each photon; row order of the Gram matrix."""
        return self._occupation.indices()

    def to_lossy(self) -> "Input":
        """Same photons over 2m modes, the added environment modes empty."""
        return Input(self._occupation.to_lossy(), self._distinguishability,
                     self._gram if self._distinguishability is Distinguishability.PART_DIST else None)

    def __repr__(self):
        return (f"Input({list(self._occupation.state)}, "
                f"{self._distinguishability.name})")
