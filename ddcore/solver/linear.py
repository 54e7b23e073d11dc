# -*- coding: utf-8 -*-
"""
Linear solver adapters (sparse direct, banded).
Keep the API tiny so callers can swap SciPy for something else later;
the assemblers never call these themselves.
"""
from __future__ import annotations

import numpy as np
import scipy.sparse as sp
from scipy.linalg import solve_banded
from scipy.sparse.linalg import spsolve

__all__ = ["solve_sparse", "solve_tridiagonal"]


def solve_sparse(A: sp.spmatrix, b: np.ndarray) -> np.ndarray:
    """Direct sparse solve (SuperLU via scipy)."""
    return np.asarray(spsolve(sp.csc_matrix(A), np.asarray(b, dtype=np.float64)), dtype=np.float64)


def solve_tridiagonal(system) -> np.ndarray:
    """Solve a ContinuitySystem (main/upper/lower/rhs) with a banded LU."""
    if system.size == 1:
        return np.asarray(system.rhs, dtype=np.float64) / system.main_diag
    return solve_banded((1, 1), system.banded(), system.rhs)
