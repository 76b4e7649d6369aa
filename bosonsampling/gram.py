from __future__ import annotations

import numpy as np

from .config import SimulationConfig, resolve_config
from .errors import InvalidGramMatrix

__all__ = ["GramMatrix"]


class GramMatrix:
    """
    Pairwise overlaps ``S[k, l] = <psi_k|psi_l>`` of the photons' internal states.

    Photons are ordered by input mode, i.e. in the order produced by
    :meth:`ModeOccupation.indices`. The matrix is validated on construction:
    Hermitian, unit diagonal and positive semidefinite within
    ``config.gram_atol``.

    Use the named constructors for the usual models:

    >>> GramMatrix.bosonic(3)              # all ones, full coherence
    >>> GramMatrix.distinguishable(3)      # identity, no coherence
    >>> GramMatrix.one_parameter(3, 0.8)   # every overlap equal to 0.8
    >>> GramMatrix.random(3, rng)          # normalised A A^*
    """

    def __init__(self, matrix, config: SimulationConfig | None = None):
        config = resolve_config(config)
        S = np.array(matrix, dtype=np.complex128)
        _validate(S, config.gram_atol)
        S.setflags(write=False)
        self._S = S

    @property
    def matrix(self) -> np.ndarray:
        return self._S

    @property
    def n(self) -> int:
        return self._S.shape[0]

    @property
    def is_bosonic(self) -> bool:
        return bool(np.allclose(self._S, 1.0))

    @property
    def is_distinguishable(self) -> bool:
        return bool(np.allclose(self._S, np.eye(self.n)))

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------
    @classmethod
    def bosonic(cls, n: int) -> "GramMatrix":
        return cls(np.ones((n, n)))

    @classmethod
    def distinguishable(cls, n: int) -> "GramMatrix":
        return cls(np.eye(n))

    @classmethod
    def one_parameter(cls, n: int, x: float) -> "GramMatrix":
        """
        Interpolate between the two extremes with a single overlap ``x``.

        ``x = 1`` is the bosonic matrix, ``x = 0`` the distinguishable one.
        """
        if not 0.0 <= x <= 1.0:
            raise InvalidGramMatrix(f"overlap parameter must lie in [0, 1], got {x}")
        S = np.full((n, n), x, dtype=np.complex128)
        np.fill_diagonal(S, 1.0)
        return cls(S)

    @classmethod
    def random(cls, n: int, rng: np.random.Generator | None = None,
               rank: int | None = None) -> "GramMatrix":
        """
        Random Gram matrix from ``A A^*`` with a complex Gaussian ``A``.

        ``rank`` is the dimension of the internal-state space (defaults to
        ``n``); a small rank gives strongly overlapping photons.
        """
        rng = np.random.default_rng() if rng is None else rng
        rank = n if rank is None else rank
        if rank < 1:
            raise InvalidGramMatrix(f"rank must be positive, got {rank}")
        A = (rng.standard_normal((n, rank))
             + 1j * rng.standard_normal((n, rank))) / np.sqrt(2)
        S = A @ A.conj().T
        d = 1.0 / np.sqrt(np.real(np.diag(S)))
        S = d[:, None] * S * d[None, :]
        # exact symmetrisation removes rounding asymmetry before validation
        S = 0.5 * (S + S.conj().T)
        np.fill_diagonal(S, 1.0)
        return cls(S)

    def __eq__(self, other):
        if not isinstance(other, GramMatrix):
            return NotImplemented
        return self._S.shape == other._S.shape and np.array_equal(self._S, other._S)

    __hash__ = None

    def __repr__(self):
        return f"GramMatrix(n={self.n})"


def _validate(S: np.ndarray, atol: float) -> None:
    if S.ndim != 2 or S.shape[0] != S.shape[1]:
        raise InvalidGramMatrix(f"Gram matrix must be square, got shape {S.shape}")
    if S.shape[0] == 0:
        return
    if not np.allclose(S, S.conj().T, atol=atol, rtol=0.0):
        raise InvalidGramMatrix("Gram matrix is not Hermitian")
    if not np.allclose(np.diag(S), 1.0, atol=atol, rtol=0.0):
        raise InvalidGramMatrix("Gram matrix diagonal must be all ones")
    eigvals = np.linalg.eigvalsh(0.5 * (S + S.conj().T))
    if eigvals.min() < -atol:
        raise InvalidGramMatrix(
            f"Gram matrix is not positive semidefinite "
            f"(smallest eigenvalue {eigvals.min():.3e})")
