"""Exceptions raised by the probability engine and its value types."""


class BosonSamplingError(Exception):
    """Base class for every error raised by :mod:`bosonsampling`."""


class DimensionMismatch(BosonSamplingError, ValueError):
    """Mode counts disagree between input, interferometer and measurement."""


class InvalidGramMatrix(BosonSamplingError, ValueError):
    """Gram matrix is not Hermitian, unit-diagonal and positive semidefinite."""


class InvalidInterferometer(BosonSamplingError, ValueError):
    """Interferometer matrix is not unitary within tolerance."""


class PhotonNumberMismatch(BosonSamplingError, ValueError):
    """Input and output photon totals differ for an exact detection."""


class UnsupportedCombination(BosonSamplingError, ValueError):
    """No algorithm is registered for an (input type, measurement) pair."""


class LossEmbeddingError(BosonSamplingError, ValueError):
    """An object that is already lossy was expanded a second time."""


class EventNotEvaluated(BosonSamplingError, RuntimeError):
    """The result of an event was read before ``evaluate`` was called."""


class Cancelled(Exception):
    """
    A long-running computation observed its cancellation signal.

    Not a :class:`BosonSamplingError`: it reports a caller request, not a
    fault of the inputs.
    """


def check_cancelled(cancel) -> None:
    """Raise :class:`Cancelled` if ``cancel`` (a ``threading.Event``) is set."""
    if cancel is not None and cancel.is_set():
        raise Cancelled("computation cancelled by caller")
