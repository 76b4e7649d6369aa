import itertools
from typing import Sequence

import numba as nb
import numpy as np
import torch

from .config import SimulationConfig, resolve_config
from .errors import check_cancelled

__all__ = [
    "permanent", "compute_permanent_torch", "batched_permanents",
    "construct_submatrix",
]


# ------------------------------------------------------------------
# Ryser permanent, Gray-code order
# ------------------------------------------------------------------
@nb.njit(cache=True)
def _ryser_permanent(mat):
    """
    Compute the permanent of a square matrix using Rysers formula.

    Column subsets are visited in Gray-code order so each step adds or
    removes a single column from the running row sums, giving O(n * 2**n).

    Parameters:
        mat (np.ndarray): An n x n complex128 array.

    Returns:
        complex: The permanent of the input matrix.
    """
    n = mat.shape[0]
    if n == 0:
        return 1.0 + 0.0j
    row_sums = np.zeros(n, dtype=np.complex128)
    in_set = np.zeros(n, dtype=np.bool_)
    size = 0
    total = 0.0 + 0.0j

    for k in range(1, 1 << n):
        # column to flip = index of the lowest set bit of k
        j = 0
        g = k
        while (g & 1) == 0:
            g >>= 1
            j += 1
        if in_set[j]:
            in_set[j] = False
            size -= 1
            for i in range(n):
                row_sums[i] -= mat[i, j]
        else:
            in_set[j] = True
            size += 1
            for i in range(n):
                row_sums[i] += mat[i, j]

        prod = 1.0 + 0.0j
        for i in range(n):
            prod *= row_sums[i]
        if size & 1:
            total -= prod
        else:
            total += prod

    if n & 1:
        total = -total
    return total


# ------------------------------------------------------------------
# Glynn permanent (torch, vectorised)
# ------------------------------------------------------------------
def _glynn_signs(n: int, device=None) -> torch.Tensor:
    """All sign vectors with the first entry fixed to +1, shape (2^(n-1), n)."""
    exp = torch.arange(1 << (n - 1), device=device, dtype=torch.int64).unsqueeze(1)
    bits = (exp >> torch.arange(n - 1, device=device, dtype=torch.int64)) & 1
    signs = 1 - 2 * bits                                  # {+1, -1}
    first = torch.ones((signs.shape[0], 1), device=device, dtype=torch.int64)
    return torch.cat([first, signs], dim=1)


def compute_permanent_torch(A: torch.Tensor) -> torch.Tensor:
    """
    Permanent of a square tensor with the Glynn formula.

    P = 2^{1-n} sum_delta (prod_i delta_i) prod_j sum_i delta_i A_ij, with
    delta_1 fixed to +1. Works on CPU or GPU.
    """
    return _glynn_batch(A.unsqueeze(0))[0]


def _glynn_batch(A: torch.Tensor) -> torch.Tensor:
    """Glynn formula over a (batch, n, n) tensor."""
    A = A.to(torch.complex128)
    n = A.shape[-1]
    if n == 0:
        return torch.ones(A.shape[0], dtype=torch.complex128, device=A.device)
    int_signs = _glynn_signs(n, device=A.device)          # (2^(n-1), n)
    signs = int_signs.to(torch.complex128)
    S = torch.matmul(signs, A)                            # (batch, 2^(n-1), n)
    prod = S[..., 0]
    for j in range(1, n):
        prod = prod * S[..., j]
    coeff = int_signs.prod(dim=1).to(torch.complex128)   # prod_i delta_i
    return (prod * coeff).sum(dim=-1) * (2.0 ** (1 - n))


# ------------------------------------------------------------------
# Public entry points
# ------------------------------------------------------------------
def permanent(mat, config: SimulationConfig | None = None) -> complex:
    """
    Exact permanent of a complex square matrix.

    Small matrices go through the compiled Ryser kernel; above
    ``config.ryser_max_n`` the torch Glynn kernel is used, as it
    vectorises far better for large n.

    Parameters:
        mat (array_like): Square matrix (n x n).
        config (SimulationConfig, optional): Cut-over settings.

    Returns:
        complex: Permanent of ``mat``.
    """
    config = resolve_config(config)
    arr = np.array(mat, dtype=np.complex128, order="C")
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise ValueError(f"permanent needs a square matrix, got shape {arr.shape}")
    n = arr.shape[0]
    if n == 0:
        return 1.0 + 0.0j
    if n <= config.ryser_max_n:
        return complex(_ryser_permanent(arr))
    return complex(compute_permanent_torch(torch.from_numpy(arr)).item())


def batched_permanents(mats, config: SimulationConfig | None = None,
                       cancel=None) -> np.ndarray:
    """
    Permanents of a stack of equally sized matrices, shape (batch, n, n).

    The stack is split into chunks holding at most
    ``config.glynn_chunk_elements`` intermediate entries; ``cancel`` is
    checked before every chunk.
    """
    config = resolve_config(config)
    arr = np.ascontiguousarray(mats, dtype=np.complex128)
    batch, n = arr.shape[0], arr.shape[-1]
    out = np.empty(batch, dtype=np.complex128)
    if n == 0:
        out[:] = 1.0
        return out
    per_matrix = (1 << (n - 1)) * n
    chunk = max(1, config.glynn_chunk_elements // per_matrix)
    tensor = torch.from_numpy(arr)
    for start in range(0, batch, chunk):
        check_cancelled(cancel)
        stop = min(start + chunk, batch)
        out[start:stop] = _glynn_batch(tensor[start:stop]).numpy()
    return out


def construct_submatrix(U: np.ndarray, rows: Sequence[int], cols: Sequence[int]) -> np.ndarray:
    """
    Extract a submatrix of U using specified rows and columns.

    Repeated indices repeat the row/column, which is how multiply occupied
    modes enter the permanent.
    """
    return U[np.ix_(list(rows), list(cols))]


def permutations_with_weight(S: np.ndarray, atol: float = 0.0):
    """
    Yield ``(pi, prod_k S[pi[k], k])`` for every permutation with a
    non-negligible weight.

    Used by the partial-distinguishability formula; an identity Gram matrix
    leaves only the identity permutation.
    """
    n = S.shape[0]
    cols = np.arange(n)
    for pi in itertools.permutations(range(n)):
        weight = complex(np.prod(S[list(pi), cols])) if n else 1.0 + 0.0j
        if abs(weight) > atol:
            yield pi, weight
