import itertools
import unittest

import numpy as np
import torch

from bosonsampling.config import SimulationConfig
from bosonsampling.permanent import (
    batched_permanents, compute_permanent_torch, construct_submatrix,
    permanent, permutations_with_weight,
)


def naive_permanent(mat):
    n = mat.shape[0]
    total = 0.0 + 0.0j
    for pi in itertools.permutations(range(n)):
        total += np.prod([mat[i, pi[i]] for i in range(n)])
    return total


def random_complex(rng, n):
    return rng.standard_normal((n, n)) + 1j * rng.standard_normal((n, n))


class TestPermanent(unittest.TestCase):

    def setUp(self):
        self.rng = np.random.default_rng(7)

    def test_small_known_values(self):
        self.assertAlmostEqual(permanent(np.array([[2.0]])), 2.0)
        self.assertAlmostEqual(permanent(np.array([[1.0, 2.0], [3.0, 4.0]])), 10.0)
        self.assertAlmostEqual(permanent(np.ones((3, 3))), 6.0)
        self.assertAlmostEqual(permanent(np.ones((4, 4))), 24.0)

    def test_empty_matrix(self):
        self.assertEqual(permanent(np.zeros((0, 0))), 1.0)

    def test_non_square(self):
        with self.assertRaises(ValueError):
            permanent(np.ones((2, 3)))

    def test_ryser_against_definition(self):
        for n in range(1, 6):
            mat = random_complex(self.rng, n)
            np.testing.assert_allclose(permanent(mat), naive_permanent(mat), rtol=1e-10)

    def test_glynn_against_ryser(self):
        mat = random_complex(self.rng, 6)
        glynn = compute_permanent_torch(torch.from_numpy(mat)).item()
        np.testing.assert_allclose(glynn, permanent(mat), rtol=1e-10)

    def test_cut_over_to_glynn(self):
        mat = random_complex(self.rng, 5)
        forced = permanent(mat, SimulationConfig(ryser_max_n=2))
        np.testing.assert_allclose(forced, naive_permanent(mat), rtol=1e-10)

    def test_batched(self):
        mats = np.stack([random_complex(self.rng, 4) for _ in range(7)])
        expected = [naive_permanent(m) for m in mats]
        # tiny chunks exercise the splitting
        got = batched_permanents(mats, SimulationConfig(glynn_chunk_elements=40))
        np.testing.assert_allclose(got, expected, rtol=1e-10)

    def test_submatrix_repeats_rows_and_columns(self):
        U = np.arange(9.0).reshape(3, 3)
        M = construct_submatrix(U, [0, 0, 2], [1, 1, 1])
        np.testing.assert_array_equal(M, [[1, 1, 1], [1, 1, 1], [7, 7, 7]])

    def test_permutation_weights(self):
        self.assertEqual([pi for pi, _ in permutations_with_weight(np.eye(3))], [(0, 1, 2)])
        weights = dict(permutations_with_weight(np.ones((3, 3))))
        self.assertEqual(len(weights), 6)
        S = np.array([[1.0, 0.5], [0.5, 1.0]])
        weights = dict(permutations_with_weight(S))
        self.assertAlmostEqual(weights[(1, 0)], 0.25)


if __name__ == "__main__":
    unittest.main()
