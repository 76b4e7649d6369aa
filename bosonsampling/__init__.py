from .__version__ import __version__
from .config import DEFAULT_CONFIG, SimulationConfig
from .engine import (
    compute_probability,
    evaluate,
    fock_distribution,
    sample_fock_many,
    sample_outcome,
)
from .errors import (
    BosonSamplingError,
    Cancelled,
    DimensionMismatch,
    EventNotEvaluated,
    InvalidGramMatrix,
    InvalidInterferometer,
    LossEmbeddingError,
    PhotonNumberMismatch,
    UnsupportedCombination,
)
from .event import Evaluated, Event, Unevaluated
from .fock import ModeOccupation, Partition, Subset, all_mode_configurations
from .gram import GramMatrix
from .inputs import Distinguishability, Input
from .interferometer import (
    GeneralLossInterferometer,
    Interferometer,
    LossyCircuit,
    LossyInterferometer,
    ModeLoss,
    PhysicalTransfer,
    UniformLoss,
    UniformLossInterferometer,
    beam_splitter,
    lossy_line,
    random_unitary,
)
from .measurements import (
    FockDetection,
    FockSample,
    MeasurementKind,
    PartitionCount,
    PartitionCountsAll,
    RealisticDetectorsFockSample,
)
from .permanent import permanent

__all__ = [
    "__version__",
    # values
    "ModeOccupation", "Subset", "Partition", "all_mode_configurations",
    "GramMatrix", "Distinguishability", "Input",
    "Interferometer", "LossyInterferometer", "UniformLossInterferometer",
    "GeneralLossInterferometer", "UniformLoss", "ModeLoss", "PhysicalTransfer",
    "LossyCircuit", "lossy_line", "beam_splitter", "random_unitary",
    "MeasurementKind", "FockDetection", "FockSample", "PartitionCount",
    "PartitionCountsAll", "RealisticDetectorsFockSample",
    "Event", "Evaluated", "Unevaluated",
    # engine
    "evaluate", "compute_probability", "sample_outcome", "sample_fock_many",
    "fock_distribution", "permanent",
    # configuration and errors
    "SimulationConfig", "DEFAULT_CONFIG",
    "BosonSamplingError", "DimensionMismatch", "InvalidGramMatrix",
    "InvalidInterferometer", "PhotonNumberMismatch", "UnsupportedCombination",
    "LossEmbeddingError", "EventNotEvaluated", "Cancelled",
]
