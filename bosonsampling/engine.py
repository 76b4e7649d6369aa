"""
Probability engine.

Dispatches on the pair (input distinguishability, measurement kind) through
two explicit tables, one for probabilities and one for sampled outcomes.
Every input check happens here, before any numerical work starts.
"""
import logging

import numpy as np

from .config import SimulationConfig, resolve_config
from .errors import (
    DimensionMismatch, PhotonNumberMismatch, UnsupportedCombination,
)
from .fock import ModeOccupation, all_mode_configurations
from .inputs import Distinguishability, Input
from .interferometer import Interferometer
from .measurements import (
    FockDetection, FockSample, MeasurementKind, OutputMeasurement,
)
from .partitions import partition_count_distribution
from .probabilities import (
    bosonic_probability, distinguishable_probability,
    partially_distinguishable_probability,
)
from .sampling import (
    apply_detector_noise, clifford_sample, distinguishable_sample,
    partially_distinguishable_sample, rejection_setup,
)

__all__ = [
    "evaluate", "compute_probability", "sample_outcome",
    "sample_fock_many", "fock_distribution",
]

logger = logging.getLogger(__name__)

D = Distinguishability
K = MeasurementKind


# ──────────────────────────────────────────────────────────
# Handlers
# ──────────────────────────────────────────────────────────
def _bosonic_fock(inp, itf, meas, *, rng, cancel, config, scratch=None):
    return bosonic_probability(itf.U, inp.occupation, meas.target, config)


def _distinguishable_fock(inp, itf, meas, *, rng, cancel, config, scratch=None):
    return distinguishable_probability(itf.U, inp.occupation, meas.target, config)


def _partdist_fock(inp, itf, meas, *, rng, cancel, config, scratch=None):
    return partially_distinguishable_probability(
        itf.U, inp.occupation, meas.target, inp.gram.matrix, config, cancel)


def _partition_all(inp, itf, meas, *, rng, cancel, config, scratch=None):
    return partition_count_distribution(
        itf.U, inp.occupation, inp.gram.matrix, meas.partition, config, cancel)


def _partition_one(inp, itf, meas, *, rng, cancel, config, scratch=None):
    dist = partition_count_distribution(
        itf.U, inp.occupation, inp.gram.matrix, meas.partition, config, cancel)
    return dist.get(meas.counts, 0.0)


def _rejection_setup(inp, config, scratch):
    if scratch is None:
        return None
    if "rejection" not in scratch:
        scratch["rejection"] = rejection_setup(inp.gram.matrix, inp.occupation, config)
    return scratch["rejection"]


def _bosonic_sample(inp, itf, meas, *, rng, cancel, config, scratch=None):
    if max(inp.occupation, default=0) > 1:
        return partially_distinguishable_sample(
            itf.U, inp.occupation, inp.gram.matrix, rng, config, cancel,
            setup=_rejection_setup(inp, config, scratch))
    return clifford_sample(itf.U, inp.occupation, rng, config, cancel)


def _distinguishable_sample(inp, itf, meas, *, rng, cancel, config, scratch=None):
    return distinguishable_sample(itf.U, inp.occupation, rng)


def _partdist_sample(inp, itf, meas, *, rng, cancel, config, scratch=None):
    return partially_distinguishable_sample(
        itf.U, inp.occupation, inp.gram.matrix, rng, config, cancel,
        setup=_rejection_setup(inp, config, scratch))


_IDEAL_SAMPLERS = {
    D.BOSONIC: _bosonic_sample,
    D.DISTINGUISHABLE: _distinguishable_sample,
    D.PART_DIST: _partdist_sample,
}


def _realistic_sample(inp, itf, meas, *, rng, cancel, config, scratch=None):
    ideal = _IDEAL_SAMPLERS[inp.distinguishability](
        inp, itf, meas, rng=rng, cancel=cancel, config=config, scratch=scratch)
    return apply_detector_noise(ideal, meas.p_dark, meas.p_no_count, rng)


_PROBABILITY_TABLE = {
    (D.BOSONIC, K.FOCK_DETECTION): _bosonic_fock,
    (D.DISTINGUISHABLE, K.FOCK_DETECTION): _distinguishable_fock,
    (D.PART_DIST, K.FOCK_DETECTION): _partdist_fock,
}
_SAMPLING_TABLE = {}
for _d in Distinguishability:
    _PROBABILITY_TABLE[(_d, K.PARTITION_COUNTS_ALL)] = _partition_all
    _PROBABILITY_TABLE[(_d, K.PARTITION_COUNT)] = _partition_one
    _SAMPLING_TABLE[(_d, K.FOCK_SAMPLE)] = _IDEAL_SAMPLERS[_d]
    _SAMPLING_TABLE[(_d, K.REALISTIC_FOCK_SAMPLE)] = _realistic_sample
del _d

_TABLE = {**_PROBABILITY_TABLE, **_SAMPLING_TABLE}


# ──────────────────────────────────────────────────────────
# Boundary checks
# ──────────────────────────────────────────────────────────
def _prepare(input_state, interferometer, measurement, config):
    if not isinstance(input_state, Input):
        raise TypeError(f"expected an Input, got {type(input_state).__name__}")
    if not isinstance(interferometer, Interferometer):
        interferometer = Interferometer(interferometer, config=config)

    if input_state.m != interferometer.m:
        raise DimensionMismatch(
            f"input has {input_state.m} modes, interferometer {interferometer.m}")
    meas_m = getattr(measurement, "m", None)
    if meas_m is not None and meas_m != interferometer.m:
        raise DimensionMismatch(
            f"measurement has {meas_m} modes, interferometer {interferometer.m}")

    kind = measurement.kind
    n = input_state.n
    if kind is K.FOCK_DETECTION and measurement.target.n != n:
        raise PhotonNumberMismatch(
            f"{n} input photons but {measurement.target.n} detected")
    if kind is K.PARTITION_COUNT:
        total = sum(measurement.counts)
        if total > n or (measurement.partition.is_complete and total != n):
            raise PhotonNumberMismatch(
                f"{n} input photons but bin counts {measurement.counts}")
    return interferometer


def _run(table, input_state, interferometer, measurement, rng, cancel, config,
         scratch=None):
    config = resolve_config(config)
    interferometer = _prepare(input_state, interferometer, measurement, config)
    key = (input_state.distinguishability, measurement.kind)
    try:
        handler = table[key]
    except KeyError:
        raise UnsupportedCombination(
            f"no algorithm for {key[0].name} input with "
            f"{type(measurement).__name__}") from None
    rng = np.random.default_rng() if rng is None else rng
    logger.debug("dispatch %s x %s -> %s", key[0].name, key[1].name, handler.__name__)
    return handler(input_state, interferometer, measurement,
                   rng=rng, cancel=cancel, config=config, scratch=scratch)


# ──────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────
def evaluate(input_state: Input, interferometer, measurement: OutputMeasurement,
             *, rng=None, cancel=None, config: SimulationConfig | None = None):
    """
    Probability, sampled outcome or bin-count distribution for one trial.

    Parameters:
        input_state (Input): Photons and their distinguishability.
        interferometer (Interferometer | np.ndarray): Validated unitary, or a
            raw matrix that is validated here.
        measurement: One of the measurement types.
        rng (np.random.Generator, optional): Randomness for samplers.
        cancel (threading.Event, optional): Cancellation signal.
        config (SimulationConfig, optional): Numerical settings.

    Raises:
        DimensionMismatch, PhotonNumberMismatch, InvalidInterferometer,
        UnsupportedCombination; ``Cancelled`` if ``cancel`` is set.
    """
    return _run(_TABLE, input_state, interferometer, measurement, rng, cancel, config)


def compute_probability(input_state: Input, interferometer, measurement: OutputMeasurement,
                        *, cancel=None, config: SimulationConfig | None = None):
    """Probability-valued measurements only; sampling ones are unsupported here."""
    return _run(_PROBABILITY_TABLE, input_state, interferometer, measurement,
                None, cancel, config)


def sample_outcome(input_state: Input, interferometer, measurement: OutputMeasurement | None = None,
                   *, rng=None, cancel=None,
                   config: SimulationConfig | None = None) -> ModeOccupation:
    """One sampled output pattern; ``measurement`` defaults to :class:`FockSample`."""
    measurement = FockSample() if measurement is None else measurement
    return _run(_SAMPLING_TABLE, input_state, interferometer, measurement,
                rng, cancel, config)


def sample_fock_many(input_state: Input, interferometer, n_samples: int,
                     measurement: OutputMeasurement | None = None,
                     *, rng=None, cancel=None,
                     config: SimulationConfig | None = None) -> np.ndarray:
    """
    Draw ``n_samples`` independent outcomes.

    Work that depends only on the input, such as the rejection sampler's
    Gram permutation weights, is done once and shared by all draws.

    Returns:
        np.ndarray: Sampled Fock states of shape (n_samples, m).
    """
    rng = np.random.default_rng() if rng is None else rng
    measurement = FockSample() if measurement is None else measurement
    if not isinstance(interferometer, Interferometer):
        interferometer = Interferometer(interferometer, config=config)
    samples = np.empty((n_samples, input_state.m), dtype=int)
    scratch = {}
    for i in range(n_samples):
        samples[i] = _run(_SAMPLING_TABLE, input_state, interferometer, measurement,
                          rng, cancel, config, scratch).to_numpy()
    return samples


def fock_distribution(input_state: Input, interferometer, *, cancel=None,
                      config: SimulationConfig | None = None) -> dict[tuple[int, ...], float]:
    """
    Exact Fock-detection probability of every output pattern (brute force).

    The number of patterns grows as C(n + m - 1, n); prefer
    ``PartitionCountsAll`` for coarse-grained questions.
    """
    if not isinstance(interferometer, Interferometer):
        interferometer = Interferometer(interferometer, config=config)
    dist = {}
    for fock in all_mode_configurations(input_state.m, input_state.n):
        dist[fock] = compute_probability(
            input_state, interferometer, FockDetection(ModeOccupation(fock)),
            cancel=cancel, config=config)
    return dist
