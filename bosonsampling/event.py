from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from . import engine
from .config import SimulationConfig
from .errors import EventNotEvaluated
from .inputs import Input
from .interferometer import Interferometer
from .measurements import OutputMeasurement

__all__ = ["Event", "Unevaluated", "Evaluated", "UNEVALUATED"]


class Unevaluated:
    """Result slot of an event that has not been computed yet."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "Unevaluated"


UNEVALUATED = Unevaluated()


@dataclass(frozen=True)
class Evaluated:
    """Result slot holding the computed probability, sample or distribution."""
    value: Any


class Event:
    """
    One simulated trial: an input, an interferometer and a measurement.

    The result is only computed by an explicit :meth:`evaluate` call, and
    later calls return the stored value unless ``recompute=True``. The
    input, interferometer and measurement are fixed at construction, so a
    stored result always belongs to them. Example::

        ev = Event(Input.bosonic([1, 1]), Interferometer(beam_splitter()),
                   FockDetection(ModeOccupation((2, 0))))
        round(ev.evaluate(), 12)    # 0.5
    """

    def __init__(self, input_state: Input, interferometer: Interferometer,
                 measurement: OutputMeasurement):
        if not isinstance(interferometer, Interferometer):
            interferometer = Interferometer(interferometer)
        self._input = input_state
        self._interferometer = interferometer
        self._measurement = measurement
        self._state: Unevaluated | Evaluated = UNEVALUATED

    @property
    def input(self) -> Input:
        return self._input

    @property
    def interferometer(self) -> Interferometer:
        return self._interferometer

    @property
    def measurement(self) -> OutputMeasurement:
        return self._measurement

    @property
    def state(self) -> Unevaluated | Evaluated:
        return self._state

    @property
    def is_evaluated(self) -> bool:
        return isinstance(self._state, Evaluated)

    def evaluate(self, *, rng=None, cancel=None,
                 config: SimulationConfig | None = None,
                 recompute: bool = False):
        """
        Run the engine on this event and store the result.

        Parameters:
            rng (np.random.Generator, optional): Randomness for sampling
                measurements.
            cancel (threading.Event, optional): Cancellation signal.
            config (SimulationConfig, optional): Numerical settings.
            recompute (bool): Discard a stored result and compute again.

        Returns:
            The stored result (see :attr:`result`).
        """
        if self.is_evaluated and not recompute:
            return self._state.value
        value = engine.evaluate(self.input, self.interferometer, self.measurement,
                                rng=rng, cancel=cancel, config=config)
        self._state = Evaluated(value)
        return value

    @property
    def result(self):
        """
        Stored result: a probability, a sampled ``ModeOccupation`` or a
        ``dict`` of bin-count probabilities, depending on the measurement.
        """
        if not isinstance(self._state, Evaluated):
            raise EventNotEvaluated("call Event.evaluate() before reading the result")
        return self._state.value

    # readable aliases for the two usual result kinds
    probability = result
    outcome = result

    def __repr__(self):
        return (f"Event({self.input!r}, {self.interferometer!r}, "
                f"{type(self.measurement).__name__}, {self._state!r})")
