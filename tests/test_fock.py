import math
import unittest

import numpy as np

from bosonsampling.errors import DimensionMismatch, LossEmbeddingError
from bosonsampling.fock import (
    ModeOccupation, Partition, Subset, all_mode_configurations,
    fock_to_indices, modes_to_fock,
)


class TestFockUtilities(unittest.TestCase):

    def test_configuration_count(self):
        for m, n in [(1, 3), (3, 2), (4, 3), (5, 0)]:
            configs = list(all_mode_configurations(m, n))
            self.assertEqual(len(configs), math.comb(n + m - 1, n))
            self.assertEqual(len(set(configs)), len(configs))
            self.assertTrue(all(sum(c) == n and len(c) == m for c in configs))

    def test_zero_modes(self):
        self.assertEqual(list(all_mode_configurations(0, 0)), [()])
        self.assertEqual(list(all_mode_configurations(0, 2)), [])

    def test_index_conversion(self):
        self.assertEqual(fock_to_indices([2, 1, 0]), [0, 0, 1])
        np.testing.assert_array_equal(modes_to_fock([0, 2, 2], 4), [1, 0, 2, 0])


class TestModeOccupation(unittest.TestCase):

    def test_basic_properties(self):
        occ = ModeOccupation((2, 0, 1))
        self.assertEqual(occ.m, 3)
        self.assertEqual(occ.n, 3)
        self.assertEqual(occ.indices(), [0, 0, 2])
        self.assertEqual(occ.factorial_product(), 2)
        self.assertEqual(list(occ), [2, 0, 1])
        self.assertEqual(occ[0], 2)

    def test_rejects_negative_and_fractional(self):
        with self.assertRaises(ValueError):
            ModeOccupation((1, -1))
        with self.assertRaises(ValueError):
            ModeOccupation((0.5, 1))

    def test_from_mode_indices(self):
        self.assertEqual(ModeOccupation.from_mode_indices([1, 1, 3], 4),
                         ModeOccupation((0, 2, 0, 1)))

    def test_addition(self):
        total = ModeOccupation((1, 0)) + ModeOccupation((1, 2))
        self.assertEqual(total, ModeOccupation((2, 2)))
        with self.assertRaises(DimensionMismatch):
            ModeOccupation((1, 0)) + ModeOccupation((1, 0, 0))

    def test_concatenate(self):
        joined = ModeOccupation((1,)).concatenate(ModeOccupation((0, 2)))
        self.assertEqual(joined.state, (1, 0, 2))

    def test_lossy_marker_survives_addition(self):
        total = ModeOccupation((1, 0)).to_lossy() + ModeOccupation((0, 1)).to_lossy()
        self.assertEqual(total.state, (1, 1, 0, 0))
        self.assertTrue(total.lossy)
        with self.assertRaises(LossEmbeddingError):
            total.to_lossy()

    def test_mixing_lossy_and_lossless(self):
        lossy = ModeOccupation((1, 0)).to_lossy()
        with self.assertRaises(LossEmbeddingError):
            lossy + ModeOccupation((0, 0, 1, 0))
        with self.assertRaises(LossEmbeddingError):
            lossy.concatenate(ModeOccupation((1,)))
        with self.assertRaises(LossEmbeddingError):
            ModeOccupation((1,)).concatenate(lossy)

    def test_to_lossy(self):
        lossy = ModeOccupation((1, 1)).to_lossy()
        self.assertEqual(lossy.state, (1, 1, 0, 0))
        self.assertTrue(lossy.lossy)
        with self.assertRaises(LossEmbeddingError):
            lossy.to_lossy()


class TestPartition(unittest.TestCase):

    def test_subset(self):
        s = Subset.from_modes(4, [0, 2])
        self.assertEqual(s.state, (1, 0, 1, 0))
        self.assertEqual(s.modes, (0, 2))
        self.assertEqual(s.count(ModeOccupation((2, 1, 1, 0))), 3)
        with self.assertRaises(ValueError):
            Subset((0, 2))
        with self.assertRaises(DimensionMismatch):
            Subset.from_modes(2, [3])

    def test_subset_to_lossy(self):
        s = Subset.from_modes(3, [1])
        lossy = s.to_lossy()
        self.assertIsInstance(lossy, Subset)
        self.assertEqual(lossy.state, (0, 1, 0, 0, 0, 0))
        self.assertEqual(lossy.modes, s.modes)
        self.assertEqual(s.m, 3)
        with self.assertRaises(LossEmbeddingError):
            lossy.to_lossy()

    def test_disjoint_and_same_size(self):
        with self.assertRaises(ValueError):
            Partition.from_mode_groups(3, [[0, 1], [1, 2]])
        with self.assertRaises(DimensionMismatch):
            Partition([Subset((1, 0)), Subset((0, 0, 1))])

    def test_completeness_and_counts(self):
        full = Partition.from_mode_groups(4, [[0, 1], [2, 3]])
        part = Partition.from_mode_groups(4, [[0], [3]])
        self.assertTrue(full.is_complete)
        self.assertFalse(part.is_complete)
        occ = ModeOccupation((1, 0, 2, 1))
        self.assertEqual(full.counts(occ), (1, 3))
        self.assertEqual(part.counts(occ), (1, 1))

    def test_to_lossy_adds_environment_bin(self):
        partition = Partition.from_mode_groups(2, [[0], [1]]).to_lossy()
        self.assertEqual(partition.n_subsets, 3)
        self.assertEqual(partition.m, 4)
        self.assertTrue(partition.is_complete)
        self.assertEqual(partition.subsets[-1].modes, (2, 3))
        with self.assertRaises(LossEmbeddingError):
            partition.to_lossy()

    def test_equality(self):
        a = Partition.from_mode_groups(3, [[0], [1, 2]])
        b = Partition.from_mode_groups(3, [[0], [1, 2]])
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))


if __name__ == "__main__":
    unittest.main()
