"""
Photon-count distributions over binned output modes.

Instead of summing Fock-detection probabilities over every fine-grained
output pattern, the characteristic function of the bin counts

    P(x) = E[prod_b x_b^{N_b}] = Perm((conj(U_r) diag(x) U_r^T) o S) / N_in

is evaluated on the grid ``x_b = omega^{l_b}``, ``omega = exp(2 pi i / (n+1))``,
and every coefficient is recovered at once with an inverse FFT. ``U_r`` holds
the rows of ``U`` of each input photon, ``S`` is the Gram matrix and
``N_in`` the input normalisation. Per-bin matrices are built once and shared
by every grid point.
"""
import itertools
import logging
import warnings

import numpy as np

from .config import SimulationConfig, resolve_config
from .errors import check_cancelled
from .fock import ModeOccupation, Partition
from .permanent import batched_permanents
from .probabilities import _clip_probability, input_normalisation

__all__ = ["partition_count_distribution", "bin_matrices"]

logger = logging.getLogger(__name__)


def bin_matrices(U: np.ndarray, photon_modes, partition: Partition) -> np.ndarray:
    """
    ``W_b = conj(U_r[:, K_b]) @ U_r[:, K_b].T`` for every bin ``b``.

    Returns:
        np.ndarray: Shape (k, n, n).
    """
    Ur = U[np.asarray(photon_modes, dtype=int), :]
    mats = []
    for subset in partition:
        cols = list(subset.modes)
        mats.append(np.conj(Ur[:, cols]) @ Ur[:, cols].T)
    return np.stack(mats) if mats else np.zeros((0, len(photon_modes), len(photon_modes)))


def partition_count_distribution(
        U: np.ndarray,
        input_occ: ModeOccupation,
        S: np.ndarray,
        partition: Partition,
        config: SimulationConfig | None = None,
        cancel=None) -> dict[tuple[int, ...], float]:
    """
    Joint distribution of the photon numbers in every bin of ``partition``.

    For a complete partition the last bin is fixed by photon conservation
    and keys sum to ``n``; otherwise the result is the marginal over the
    listed bins and keys sum to at most ``n``.

    Parameters:
        U (np.ndarray): Interferometer matrix (m x m).
        input_occ (ModeOccupation): Input photons.
        S (np.ndarray): Gram matrix in input-mode photon order.
        partition (Partition): Output bins.
        config (SimulationConfig, optional): Numerical settings.
        cancel (threading.Event, optional): Checked between permanent chunks.

    Returns:
        dict[tuple[int, ...], float]: Probability of each bin-count tuple.
    """
    config = resolve_config(config)
    photon_modes = input_occ.indices()
    n = len(photon_modes)
    k = partition.n_subsets
    complete = partition.is_complete

    if n == 0:
        return {(0,) * k: 1.0}
    if complete and k == 1:
        return {(n,): 1.0}

    free = k - 1 if complete else k
    size = n + 1
    omega = np.exp(2j * np.pi / size)

    W = bin_matrices(U, photon_modes, partition)
    Ur = U[np.asarray(photon_modes, dtype=int), :]
    # everything outside the free bins is evaluated at x = 1
    base = np.conj(Ur) @ Ur.T - W[:free].sum(axis=0)

    grid = np.array(list(itertools.product(range(size), repeat=free)), dtype=int)
    logger.debug("partition distribution: n=%d bins=%d grid points=%d",
                 n, k, len(grid))

    check_cancelled(cancel)
    phases = omega ** grid                                    # (points, free)
    G = base[None, :, :] + np.einsum("gb,bij->gij", phases, W[:free])
    G = G * S[None, :, :]

    values = batched_permanents(G, config=config, cancel=cancel)
    values = values / input_normalisation(S, photon_modes, config)

    coeffs = np.fft.fftn(values.reshape((size,) * free)) / size ** free
    probs = coeffs.real

    dist: dict[tuple[int, ...], float] = {}
    leaked = 0.0
    for counts in grid:
        total = int(counts.sum())
        p = float(probs[tuple(counts)])
        if total > n:
            leaked += abs(p)
            continue
        p = _clip_probability(p, config.probability_atol)
        key = tuple(int(c) for c in counts)
        if complete:
            key = key + (n - total,)
        dist[key] = p

    norm = sum(dist.values())
    if abs(norm - 1.0) > config.probability_atol or leaked > config.probability_atol:
        warnings.warn(
            f"partition distribution sums to {norm:.10f} "
            f"(weight {leaked:.3e} outside the physical counts); "
            "the interferometer may not be unitary.", RuntimeWarning)
    return dist
