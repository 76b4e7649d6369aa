from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import DimensionMismatch
from .fock import ModeOccupation, Partition

__all__ = [
    "MeasurementKind", "FockDetection", "FockSample", "PartitionCount",
    "PartitionCountsAll", "RealisticDetectorsFockSample", "OutputMeasurement",
]


class MeasurementKind(Enum):
    FOCK_DETECTION = "fock_detection"
    FOCK_SAMPLE = "fock_sample"
    PARTITION_COUNT = "partition_count"
    PARTITION_COUNTS_ALL = "partition_counts_all"
    REALISTIC_FOCK_SAMPLE = "realistic_detectors_fock_sample"


@dataclass(frozen=True)
class FockDetection:
    """Probability of detecting exactly ``target`` photons per output mode."""
    target: ModeOccupation
    kind = MeasurementKind.FOCK_DETECTION

    def __post_init__(self):
        if not isinstance(self.target, ModeOccupation):
            object.__setattr__(self, "target", ModeOccupation(tuple(self.target)))

    @property
    def m(self) -> int:
        return self.target.m


@dataclass(frozen=True)
class FockSample:
    """One output pattern drawn from the ideal distribution."""
    kind = MeasurementKind.FOCK_SAMPLE
    m = None


@dataclass(frozen=True)
class RealisticDetectorsFockSample:
    """
    Ideal sample seen through imperfect photon-number-resolving detectors.

    Parameters:
        p_dark (float): Probability that a detector adds a dark count.
        p_no_count (float): Probability that a detector misses a real photon,
            applied independently to every photon.
    """
    p_dark: float = 0.0
    p_no_count: float = 0.0
    kind = MeasurementKind.REALISTIC_FOCK_SAMPLE
    m = None

    def __post_init__(self):
        for name in ("p_dark", "p_no_count"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1], got {value}")


@dataclass(frozen=True)
class PartitionCountsAll:
    """Joint distribution of the photon counts in every bin of ``partition``."""
    partition: Partition
    kind = MeasurementKind.PARTITION_COUNTS_ALL

    @property
    def m(self) -> int:
        return self.partition.m


@dataclass(frozen=True)
class PartitionCount:
    """Probability of one bin-count tuple ``counts`` of ``partition``."""
    partition: Partition
    counts: tuple[int, ...]
    kind = MeasurementKind.PARTITION_COUNT

    def __post_init__(self):
        counts = tuple(int(c) for c in self.counts)
        if len(counts) != self.partition.n_subsets:
            raise DimensionMismatch(
                f"{len(counts)} counts for {self.partition.n_subsets} bins")
        if any(c < 0 for c in counts):
            raise ValueError("bin counts must be non-negative")
        object.__setattr__(self, "counts", counts)

    @property
    def m(self) -> int:
        return self.partition.m


OutputMeasurement = Union[
    FockDetection, FockSample, RealisticDetectorsFockSample,
    PartitionCountsAll, PartitionCount,
]
