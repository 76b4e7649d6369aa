from __future__ import annotations

import math
from typing import Protocol, Sequence

import numpy as np

from .config import SimulationConfig, resolve_config
from .errors import DimensionMismatch, InvalidInterferometer, LossEmbeddingError

__all__ = [
    "Interferometer", "LossyInterferometer",
    "UniformLossInterferometer", "GeneralLossInterferometer",
    "LossModel", "UniformLoss", "ModeLoss", "PhysicalTransfer",
    "LossyCircuit", "lossy_line", "unitary_dilation",
    "random_unitary", "beam_splitter",
]


# ──────────────────────────────────────────────────────────
# Matrix helpers
# ──────────────────────────────────────────────────────────
def random_unitary(m: int, rng: np.random.Generator | None = None) -> np.ndarray:
    """
    Haar-random m x m unitary (QR of a complex Gaussian matrix).

    The phases of R's diagonal are folded back into Q.
    """
    rng = np.random.default_rng() if rng is None else rng
    z = (rng.standard_normal((m, m)) + 1j * rng.standard_normal((m, m))) / np.sqrt(2)
    q, r = np.linalg.qr(z)
    d = np.diag(r)
    return q * (d / np.abs(d))


def beam_splitter(transmission_amplitude: float = 1 / math.sqrt(2)) -> np.ndarray:
    """
    Real 2 x 2 beam splitter ``[[t, r], [r, -t]]`` with ``r = sqrt(1 - t^2)``.
    """
    t = float(transmission_amplitude)
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"transmission amplitude must lie in [0, 1], got {t}")
    r = math.sqrt(1.0 - t * t)
    return np.array([[t, r], [r, -t]], dtype=np.complex128)


def unitary_dilation(A: np.ndarray) -> np.ndarray:
    """
    Embed a sub-unitary ``A`` (operator norm <= 1) in a 2m x 2m unitary.

    Uses the Halmos dilation ``[[A, sqrt(I - A A^†)], [sqrt(I - A^† A), -A^†]]``:
    the upper-left block is the physical transfer matrix, the off-diagonal
    blocks route lost amplitude to and from the environment modes.

    Both defect blocks come from one SVD ``A = W diag(sigma) V^†`` so the
    off-diagonal products cancel exactly.
    """
    A = np.asarray(A, dtype=np.complex128)
    W, sigma, Vh = np.linalg.svd(A)
    defect = np.sqrt(np.clip(1.0 - sigma ** 2, 0.0, None))
    V = Vh.conj().T
    top = np.hstack([A, (W * defect) @ W.conj().T])
    bottom = np.hstack([(V * defect) @ Vh, -A.conj().T])
    return np.vstack([top, bottom])


def _check_unitary(U: np.ndarray, atol: float) -> None:
    if U.ndim != 2 or U.shape[0] != U.shape[1]:
        raise InvalidInterferometer(f"interferometer must be square, got shape {U.shape}")
    deviation = np.abs(U @ U.conj().T - np.eye(U.shape[0])).max(initial=0.0)
    if deviation > atol:
        raise InvalidInterferometer(
            f"matrix is not unitary (max |U U^† - I| = {deviation:.3e} > {atol:.1e})")


def _check_sub_unitary(A: np.ndarray, atol: float) -> None:
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise InvalidInterferometer(f"transfer matrix must be square, got shape {A.shape}")
    if A.size and np.linalg.norm(A, 2) > 1.0 + atol:
        raise InvalidInterferometer("transfer matrix amplifies light (norm > 1)")


# ──────────────────────────────────────────────────────────
# Interferometers
# ──────────────────────────────────────────────────────────
class Interferometer:
    """
    Lossless linear interferometer over ``m`` modes.

    ``U[i, j]`` is the amplitude for a photon entering mode ``i`` to leave
    through mode ``j``.
    """
    lossy = False

    def __init__(self, U, config: SimulationConfig | None = None):
        config = resolve_config(config)
        U = np.array(U, dtype=np.complex128)
        _check_unitary(U, config.unitarity_atol)
        U.setflags(write=False)
        self._U = U

    @property
    def U(self) -> np.ndarray:
        return self._U

    @property
    def m(self) -> int:
        return self._U.shape[0]

    def to_lossy(self, loss_model: "LossModel | None" = None,
                 config: SimulationConfig | None = None) -> "GeneralLossInterferometer":
        """Lossy counterpart over 2m modes; full transmission by default."""
        loss_model = UniformLoss(1.0) if loss_model is None else loss_model
        return GeneralLossInterferometer(self._U, loss_model, config=config)

    def __repr__(self):
        return f"{type(self).__name__}(m={self.m})"


class LossyInterferometer(Interferometer):
    """
    Unitary over ``2 * m_real`` modes whose second half are environment modes.

    ``m_real`` and ``U_physical`` are derived from the embedded unitary.
    """
    lossy = True

    def __init__(self, U, config: SimulationConfig | None = None):
        super().__init__(U, config=config)
        if self.m % 2:
            raise DimensionMismatch(
                f"a lossy interferometer needs an even mode count, got {self.m}")

    @property
    def m_real(self) -> int:
        return self.m // 2

    @property
    def U_physical(self) -> np.ndarray:
        k = self.m_real
        return self._U[:k, :k]

    def to_lossy(self, loss_model=None, config=None):
        raise LossEmbeddingError(f"{type(self).__name__} is already lossy")


class UniformLossInterferometer(LossyInterferometer):
    """
    ``U`` followed by identical loss on every mode.

    ``transmission`` is the amplitude ``eta``; the photon survival
    probability is ``eta ** 2``.
    """

    def __init__(self, transmission: float, U, config: SimulationConfig | None = None):
        self.transmission = float(transmission)
        self.U_lossless = np.array(U, dtype=np.complex128)
        super().__init__(UniformLoss(self.transmission).embed(self.U_lossless), config=config)


class GeneralLossInterferometer(LossyInterferometer):
    """Lossy interferometer whose embedding is delegated to a :class:`LossModel`."""

    def __init__(self, U, loss_model: "LossModel", config: SimulationConfig | None = None):
        self.loss_model = loss_model
        super().__init__(loss_model.embed(np.asarray(U, dtype=np.complex128)), config=config)


# ──────────────────────────────────────────────────────────
# Loss models
# ──────────────────────────────────────────────────────────
class LossModel(Protocol):
    """Anything mapping an m x m matrix to its 2m x 2m lossy unitary."""

    def embed(self, U: np.ndarray) -> np.ndarray:
        ...


class UniformLoss:
    """Every mode transmits with amplitude ``transmission`` after ``U``."""

    def __init__(self, transmission: float):
        if not 0.0 <= transmission <= 1.0:
            raise ValueError(f"transmission must lie in [0, 1], got {transmission}")
        self.transmission = float(transmission)

    def embed(self, U: np.ndarray) -> np.ndarray:
        m = U.shape[0]
        eta = self.transmission
        t = math.sqrt(1.0 - eta * eta)
        eye = np.eye(m, dtype=np.complex128)
        zero = np.zeros((m, m), dtype=np.complex128)
        lossless = np.block([[U, zero], [zero, eye]])
        loss = np.block([[eta * eye, t * eye], [t * eye, -eta * eye]])
        return lossless @ loss


class ModeLoss:
    """
    Per-mode transmission amplitudes, applied before (``side="input"``) or
    after (``side="output"``) the interferometer.
    """

    def __init__(self, transmissions: Sequence[float], side: str = "output"):
        etas = np.asarray(transmissions, dtype=float)
        if np.any(etas < 0.0) or np.any(etas > 1.0):
            raise ValueError("transmissions must lie in [0, 1]")
        if side not in ("input", "output"):
            raise ValueError(f"side must be 'input' or 'output', got {side!r}")
        self.transmissions = etas
        self.side = side

    def embed(self, U: np.ndarray) -> np.ndarray:
        if len(self.transmissions) != U.shape[0]:
            raise DimensionMismatch(
                f"{len(self.transmissions)} transmissions for {U.shape[0]} modes")
        D = np.diag(self.transmissions).astype(np.complex128)
        A = D @ U if self.side == "input" else U @ D
        return unitary_dilation(A)


class PhysicalTransfer:
    """``U`` is already the (sub-unitary) physical transfer matrix."""

    def __init__(self, config: SimulationConfig | None = None):
        self.config = resolve_config(config)

    def embed(self, U: np.ndarray) -> np.ndarray:
        _check_sub_unitary(U, self.config.unitarity_atol)
        return unitary_dilation(U)


# ──────────────────────────────────────────────────────────
# Lossy circuits
# ──────────────────────────────────────────────────────────
def lossy_line(transmission: float) -> np.ndarray:
    """Single-mode element that only attenuates."""
    if not 0.0 <= transmission <= 1.0:
        raise ValueError(f"transmission must lie in [0, 1], got {transmission}")
    return np.array([[transmission]], dtype=np.complex128)


class LossyCircuit:
    """
    Sequence of lossy elements acting on subsets of ``m`` modes.

    Each element is a sub-unitary matrix on the listed modes; elements are
    applied in the order they are added and their transfer matrices compose.
    """

    def __init__(self, m: int, config: SimulationConfig | None = None):
        self.m = m
        self.config = resolve_config(config)
        self._A = np.eye(m, dtype=np.complex128)

    def add(self, modes: Sequence[int], element) -> "LossyCircuit":
        modes = list(modes)
        element = np.asarray(element, dtype=np.complex128)
        if element.shape != (len(modes), len(modes)):
            raise DimensionMismatch(
                f"element of shape {element.shape} on {len(modes)} modes")
        if any(not 0 <= k < self.m for k in modes) or len(set(modes)) != len(modes):
            raise DimensionMismatch(f"invalid modes {modes} for a {self.m}-mode circuit")
        _check_sub_unitary(element, self.config.unitarity_atol)
        full = np.eye(self.m, dtype=np.complex128)
        full[np.ix_(modes, modes)] = element
        self._A = self._A @ full
        return self

    def add_line(self, mode: int, transmission: float) -> "LossyCircuit":
        return self.add([mode], lossy_line(transmission))

    @property
    def transfer_matrix(self) -> np.ndarray:
        return self._A.copy()

    def interferometer(self) -> GeneralLossInterferometer:
        return GeneralLossInterferometer(
            self._A, PhysicalTransfer(self.config), config=self.config)
