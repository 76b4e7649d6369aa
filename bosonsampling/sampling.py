import logging

import numpy as np

from .config import SimulationConfig, resolve_config
from .errors import check_cancelled
from .fock import ModeOccupation, modes_to_fock
from .permanent import permanent, permutations_with_weight
from .probabilities import (
    distinguishable_probability, input_normalisation,
    partially_distinguishable_probability,
)

__all__ = [
    "clifford_sample", "distinguishable_sample", "partially_distinguishable_sample",
    "rejection_setup", "add_loss", "apply_detector_noise",
]

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────
# Indistinguishable photons: Clifford & Clifford
# ──────────────────────────────────────────────────────────
def clifford_sample(U: np.ndarray, input_occ: ModeOccupation,
                    rng: np.random.Generator,
                    config: SimulationConfig | None = None,
                    cancel=None) -> ModeOccupation:
    """
    Exact boson sample drawn one photon at a time (Clifford & Clifford, algorithm B).

    Valid for inputs with at most one photon per mode.

    With ``A`` the m x n matrix of the photons' columns in random order, the
    k-th output mode is drawn with weight ``|Perm(A[r + [j], :k])|^2``,
    expanded along the new row so only k permanents of size k-1 are needed.
    """
    config = resolve_config(config)
    m = U.shape[1]
    A = U[input_occ.indices(), :].T                       # A[j, k]: photon k -> mode j
    n = A.shape[1]
    A = A[:, rng.permutation(n)]

    rows: list[int] = []
    for k in range(1, n + 1):
        check_cancelled(cancel)
        B = A[:, :k]
        if k == 1:
            weights = np.abs(B[:, 0]) ** 2
        else:
            minors = np.array([
                permanent(B[np.ix_(rows, [c for c in range(k) if c != l])], config)
                for l in range(k)
            ])
            weights = np.abs(B @ minors) ** 2
        rows.append(int(rng.choice(m, p=weights / weights.sum())))
    return ModeOccupation(tuple(modes_to_fock(rows, m)))


# ──────────────────────────────────────────────────────────
# Distinguishable photons
# ──────────────────────────────────────────────────────────
def distinguishable_sample(U: np.ndarray, input_occ: ModeOccupation,
                           rng: np.random.Generator) -> ModeOccupation:
    """Every photon picks its output mode independently from ``|U[i, :]|^2``."""
    m = U.shape[1]
    classical = np.abs(U) ** 2
    out = np.zeros(m, dtype=int)
    for mode in input_occ.indices():
        probs = classical[mode] / classical[mode].sum()
        out[rng.choice(m, p=probs)] += 1
    return ModeOccupation(tuple(out))


# ──────────────────────────────────────────────────────────
# Partially distinguishable photons: rejection sampling
# ──────────────────────────────────────────────────────────
def rejection_setup(S: np.ndarray, input_occ: ModeOccupation,
                    config: SimulationConfig | None = None):
    """Non-zero Gram permutation weights and the acceptance bound ``K / N_in``."""
    config = resolve_config(config)
    weights = list(permutations_with_weight(S))
    return weights, len(weights) / input_normalisation(S, input_occ.indices(), config)


def partially_distinguishable_sample(U: np.ndarray, input_occ: ModeOccupation,
                                     S: np.ndarray, rng: np.random.Generator,
                                     config: SimulationConfig | None = None,
                                     cancel=None, setup=None) -> ModeOccupation:
    """
    Rejection sampling with the distinguishable distribution as proposal.

    Each term of the partially distinguishable sum is bounded by the
    classical permanent (Cauchy-Schwarz, ``|S_kl| <= 1``), so
    ``p <= (K / N_in) q`` where ``K`` counts the permutations with non-zero
    Gram weight and ``N_in`` is the input normalisation. An identity Gram
    matrix gives a bound of 1 and every proposal is accepted.

    Also used for indistinguishable photons (``S`` all ones) when an input
    mode holds more than one photon, where the Clifford sampler does not apply.

    ``setup`` is the result of :func:`rejection_setup` for the same ``S`` and
    input; passing it lets repeated draws skip the permutation enumeration.
    """
    config = resolve_config(config)
    weights, bound = rejection_setup(S, input_occ, config) if setup is None else setup
    trials = 0
    while True:
        check_cancelled(cancel)
        trials += 1
        proposal = distinguishable_sample(U, input_occ, rng)
        q = distinguishable_probability(U, input_occ, proposal, config)
        if q <= 0.0:
            continue
        p = partially_distinguishable_probability(
            U, input_occ, proposal, S, config, weights=weights)
        if rng.random() * bound * q <= p:
            logger.debug("rejection sampler accepted after %d trials", trials)
            return proposal


# ──────────────────────────────────────────────────────────
# Source and detector imperfections
# ──────────────────────────────────────────────────────────
def add_loss(state: np.ndarray, loss: float, rng: np.random.Generator) -> np.ndarray:
    """
    Each photon in each mode survives with probability (1 - loss).

    Parameters:
        state (np.ndarray): 1D array of photon counts per mode.
        loss (float): Probability that an individual photon is lost.
        rng (np.random.Generator): Randomness.

    Returns:
        np.ndarray: New Fock state vector after loss is applied.
    """
    return rng.binomial(np.asarray(state, dtype=int), 1.0 - loss)


def apply_detector_noise(ideal: ModeOccupation, p_dark: float, p_no_count: float,
                         rng: np.random.Generator) -> ModeOccupation:
    """
    Detector response to an ideal outcome.

    Every real photon is missed with probability ``p_no_count``; afterwards
    every detector independently adds one dark count with probability ``p_dark``.
    """
    counts = add_loss(ideal.to_numpy(), p_no_count, rng)
    noise = (rng.random(len(counts)) < p_dark).astype(int)
    return ModeOccupation(tuple(counts + noise))
