import threading
import unittest

import numpy as np

from bosonsampling import (
    Cancelled, Evaluated, Event, FockDetection, FockSample, Input, Interferometer,
    ModeOccupation, Partition, PartitionCountsAll, Unevaluated, beam_splitter,
    compute_probability, evaluate, sample_outcome,
)
from bosonsampling.errors import BosonSamplingError, EventNotEvaluated, InvalidInterferometer
from bosonsampling.event import UNEVALUATED


class TestEvent(unittest.TestCase):

    def setUp(self):
        self.bs = Interferometer(beam_splitter())

    def test_starts_unevaluated(self):
        ev = Event(Input.bosonic([1, 1]), self.bs, FockDetection(ModeOccupation((2, 0))))
        self.assertIs(ev.state, UNEVALUATED)
        self.assertIsInstance(ev.state, Unevaluated)
        self.assertFalse(ev.is_evaluated)
        with self.assertRaises(EventNotEvaluated):
            ev.result

    def test_evaluate_stores_probability(self):
        ev = Event(Input.bosonic([1, 1]), self.bs, FockDetection(ModeOccupation((2, 0))))
        self.assertAlmostEqual(ev.evaluate(), 0.5)
        self.assertTrue(ev.is_evaluated)
        self.assertIsInstance(ev.state, Evaluated)
        self.assertAlmostEqual(ev.probability, 0.5)

    def test_sample_is_kept_until_recompute(self):
        ev = Event(Input.bosonic([1, 1, 0]), np.eye(3), FockSample())
        first = ev.evaluate(rng=np.random.default_rng(0))
        self.assertEqual(first, ModeOccupation((1, 1, 0)))
        self.assertIs(ev.evaluate(rng=np.random.default_rng(1)), first)
        self.assertIs(ev.outcome, first)
        again = ev.evaluate(rng=np.random.default_rng(1), recompute=True)
        self.assertIsNot(again, first)
        self.assertEqual(again, first)

    def test_partition_result_is_distribution(self):
        partition = Partition.from_mode_groups(2, [[0], [1]])
        ev = Event(Input.distinguishable([1, 1]), self.bs, PartitionCountsAll(partition))
        dist = ev.evaluate()
        self.assertAlmostEqual(dist[(1, 1)], 0.5)
        self.assertAlmostEqual(dist[(2, 0)], 0.25)

    def test_evaluate_matches_direct_calls(self):
        inp = Input.one_parameter([1, 1], 0.5)
        meas = FockDetection(ModeOccupation((1, 1)))
        self.assertAlmostEqual(evaluate(inp, self.bs, meas),
                               compute_probability(inp, self.bs, meas))
        rng_a, rng_b = np.random.default_rng(3), np.random.default_rng(3)
        self.assertEqual(evaluate(inp, self.bs, FockSample(), rng=rng_a),
                         sample_outcome(inp, self.bs, rng=rng_b))

    def test_parts_are_read_only(self):
        ev = Event(Input.bosonic([1, 1]), self.bs, FockDetection(ModeOccupation((2, 0))))
        self.assertAlmostEqual(ev.evaluate(), 0.5)
        with self.assertRaises(AttributeError):
            ev.input = Input.distinguishable([1, 1])
        with self.assertRaises(AttributeError):
            ev.interferometer = Interferometer(np.eye(2))
        with self.assertRaises(AttributeError):
            ev.measurement = FockDetection(ModeOccupation((1, 1)))
        self.assertEqual(ev.input.distinguishability, Input.bosonic([1, 1]).distinguishability)
        self.assertAlmostEqual(ev.evaluate(recompute=True), 0.5)

    def test_raw_matrix_is_validated_and_frozen(self):
        U = np.eye(2)
        ev = Event(Input.bosonic([1, 1]), U, FockDetection(ModeOccupation((1, 1))))
        self.assertIsInstance(ev.interferometer, Interferometer)
        U[0, 0] = 0.0
        self.assertAlmostEqual(ev.evaluate(), 1.0)
        with self.assertRaises(InvalidInterferometer):
            Event(Input.bosonic([1, 1]), [[1.0, 1.0], [0.0, 1.0]],
                  FockDetection(ModeOccupation((1, 1))))

    def test_failed_evaluation_stays_unevaluated(self):
        ev = Event(Input.bosonic([1, 1]), self.bs, FockDetection(ModeOccupation((1, 0))))
        with self.assertRaises(BosonSamplingError):
            ev.evaluate()
        self.assertFalse(ev.is_evaluated)


class TestCancellation(unittest.TestCase):

    def test_cancelled_probability(self):
        cancel = threading.Event()
        cancel.set()
        inp = Input.one_parameter([1, 1, 1], 0.5)
        meas = FockDetection(ModeOccupation((1, 1, 1)))
        U = Interferometer(np.eye(3))
        with self.assertRaises(Cancelled):
            compute_probability(inp, U, meas, cancel=cancel)

    def test_cancelled_sampling(self):
        cancel = threading.Event()
        cancel.set()
        with self.assertRaises(Cancelled):
            sample_outcome(Input.bosonic([1, 1]), beam_splitter(), cancel=cancel)

    def test_not_a_boson_sampling_error(self):
        self.assertFalse(issubclass(Cancelled, BosonSamplingError))

    def test_unset_signal_runs(self):
        cancel = threading.Event()
        p = compute_probability(Input.one_parameter([1, 1], 0.5), beam_splitter(),
                                FockDetection(ModeOccupation((1, 1))), cancel=cancel)
        self.assertAlmostEqual(p, 0.375)


if __name__ == "__main__":
    unittest.main()
