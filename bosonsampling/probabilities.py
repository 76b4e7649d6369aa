"""
Exact Fock-detection probabilities for the three photon models.

All functions take the raw interferometer matrix (``U[i, j]``: input mode
``i`` to output mode ``j``) and the input/output occupations, and assume the
caller has already checked dimensions and photon numbers.
"""
import warnings
from typing import Sequence

import numpy as np

from .config import SimulationConfig, resolve_config
from .errors import check_cancelled
from .fock import ModeOccupation
from .permanent import construct_submatrix, permanent, permutations_with_weight

__all__ = [
    "bosonic_probability", "distinguishable_probability",
    "partially_distinguishable_probability", "input_normalisation",
]


def _clip_probability(p: float, atol: float) -> float:
    if p < 0.0:
        if p < -atol:
            warnings.warn(
                f"negative probability {p:.3e} beyond tolerance; "
                "check the interferometer and Gram matrix.", RuntimeWarning)
        return 0.0
    return p


def bosonic_probability(U: np.ndarray, input_occ: ModeOccupation,
                        output_occ: ModeOccupation,
                        config: SimulationConfig | None = None) -> float:
    """
    Indistinguishable photons: ``|Perm(M)|^2 / (prod r_i! prod s_j!)``.
    """
    config = resolve_config(config)
    M = construct_submatrix(U, input_occ.indices(), output_occ.indices())
    perm_val = permanent(M, config)
    denom = input_occ.factorial_product() * output_occ.factorial_product()
    return abs(perm_val) ** 2 / denom


def distinguishable_probability(U: np.ndarray, input_occ: ModeOccupation,
                                output_occ: ModeOccupation,
                                config: SimulationConfig | None = None) -> float:
    """
    Fully distinguishable photons: ``Perm(|M|^2) / prod s_j!``.

    No input factorials: each photon is a separate particle.
    """
    config = resolve_config(config)
    M = construct_submatrix(U, input_occ.indices(), output_occ.indices())
    classical = permanent(np.abs(M) ** 2, config).real
    return _clip_probability(classical / output_occ.factorial_product(),
                             config.probability_atol)


def input_normalisation(S: np.ndarray, photon_modes: Sequence[int],
                        config: SimulationConfig | None = None) -> float:
    """
    Squared norm of the input state, ``prod_groups Perm(S[g, g])``.

    Photons sharing an input mode form a group; this is ``prod r_i!`` for
    bosons and 1 for distinguishable photons.
    """
    config = resolve_config(config)
    photon_modes = np.asarray(photon_modes)
    norm = 1.0
    for mode in np.unique(photon_modes):
        group = np.flatnonzero(photon_modes == mode)
        if len(group) > 1:
            norm *= permanent(S[np.ix_(group, group)], config).real
    return norm


def partially_distinguishable_probability(
        U: np.ndarray,
        input_occ: ModeOccupation,
        output_occ: ModeOccupation,
        S: np.ndarray,
        config: SimulationConfig | None = None,
        cancel=None,
        weights=None) -> float:
    """
    Partially distinguishable photons with Gram matrix ``S``.

    P = sum_pi (prod_k S[pi(k), k]) Perm(M o conj(M[pi])) / (N_in prod s_j!)

    where ``M[pi]`` permutes the rows of ``M`` and ``N_in`` is
    :func:`input_normalisation`. With ``S`` all ones this is the bosonic
    formula, with ``S`` the identity only ``pi = id`` survives and it is the
    distinguishable one.

    Parameters:
        U (np.ndarray): Interferometer matrix.
        input_occ, output_occ (ModeOccupation): Photon patterns.
        S (np.ndarray): n x n Gram matrix, photons in input-mode order.
        config (SimulationConfig, optional): Numerical settings.
        cancel (threading.Event, optional): Checked once per permutation.
        weights (list, optional): Precomputed ``(pi, weight)`` pairs from
            :func:`permutations_with_weight`, reused by the sampler.

    Returns:
        float: The detection probability.
    """
    config = resolve_config(config)
    in_idx = input_occ.indices()
    M = construct_submatrix(U, in_idx, output_occ.indices())
    if weights is None:
        weights = permutations_with_weight(S)

    total = 0.0 + 0.0j
    for pi, weight in weights:
        check_cancelled(cancel)
        total += weight * permanent(M * M[list(pi)].conj(), config)

    if abs(total.imag) > config.probability_atol * max(1.0, abs(total)):
        warnings.warn(
            f"partially distinguishable sum has imaginary part {total.imag:.3e}; "
            "is the Gram matrix Hermitian?", RuntimeWarning)
    denom = input_normalisation(S, in_idx, config) * output_occ.factorial_product()
    return _clip_probability(total.real / denom, config.probability_atol)
