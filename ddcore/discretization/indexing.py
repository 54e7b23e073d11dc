# ddcore/discretization/indexing.py
"""
Coordinate → linear-index mapping for the 3D Poisson lattice.

Linearization (k fastest, then j, then i; 1-based coordinates, 0-based rows):

    idx(i, j, k) = (i-1)(Ny+1)(Nz+1) + (j-1)(Nz+1) + (k-1)

x and y are periodic: coordinates are reduced modulo the ring length before
mapping, so i = Nx+2 is node i = 1 and i = 0 is node i = Nx+1. This is how the
wrap-around couplings are produced: a coupling group asks for the neighbor
(i+1, j, k) and receives the wrap partner on the seam, with no separate code
path. z is not periodic and out-of-range k raises IndexError.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..geometry.grid import Grid3D

__all__ = ["LinearIndexMap", "AXES"]

AXES = ("x", "y", "z")


@dataclass(frozen=True)
class LinearIndexMap:
    grid: Grid3D
    wrap: Tuple[bool, bool, bool] = (True, True, False)

    @property
    def strides(self) -> Tuple[int, int, int]:
        nx, ny, nz = self.grid.shape
        return (ny * nz, nz, 1)

    def _reduce(self, c, axis: int) -> np.ndarray:
        n = self.grid.shape[axis]
        c = np.asarray(c, dtype=np.int64)
        if self.wrap[axis]:
            return np.mod(c - 1, n) + 1
        if np.any((c < 1) | (c > n)):
            raise IndexError(f"{AXES[axis]} index out of range [1, {n}]")
        return c

    def index(self, i, j, k) -> np.ndarray | int:
        """Linear row/column index of node (i, j, k); vectorized over arrays."""
        si, sj, sk = self.strides
        ii = self._reduce(i, 0)
        jj = self._reduce(j, 1)
        kk = self._reduce(k, 2)
        out = (ii - 1) * si + (jj - 1) * sj + (kk - 1) * sk
        return int(out) if out.ndim == 0 else out

    def coords(self, index) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Inverse of index(): 1-based (i, j, k)."""
        idx = np.asarray(index, dtype=np.int64)
        if np.any((idx < 0) | (idx >= self.grid.n_unknowns)):
            raise IndexError("linear index out of range")
        i0, j0, k0 = np.unravel_index(idx, self.grid.shape)
        return i0 + 1, j0 + 1, k0 + 1

    def neighbor(self, axis: int, i, j, k, step: int = 1) -> np.ndarray | int:
        """Index of the node `step` positions along `axis` (wrapping where periodic)."""
        c = [np.asarray(i), np.asarray(j), np.asarray(k)]
        c[axis] = c[axis] + step
        return self.index(*c)

    def nodes(self, k_max: int | None = None) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Flattened (i, j, k) coordinate arrays in linear-index order, restricted
        to k ≤ k_max (default: every row).
        """
        nx, ny, nz = self.grid.shape
        kk = nz if k_max is None else int(k_max)
        I, J, K = np.meshgrid(
            np.arange(1, nx + 1), np.arange(1, ny + 1), np.arange(1, kk + 1), indexing="ij"
        )
        return I.ravel(), J.ravel(), K.ravel()

    def interior_nodes(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Nodes with k = 1..Nz (rows carrying a Laplacian stencil)."""
        return self.nodes(k_max=self.grid.Nz)

    def dirichlet_nodes(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Nodes on the top Dirichlet row, k = Nz+1."""
        nx, ny, nz = self.grid.shape
        I, J = np.meshgrid(np.arange(1, nx + 1), np.arange(1, ny + 1), indexing="ij")
        return I.ravel(), J.ravel(), np.full(I.size, nz, dtype=np.int64)

    def interior_mask(self) -> np.ndarray:
        """Boolean mask over linear indices: True for non-Dirichlet rows."""
        mask = np.ones(self.grid.shape, dtype=bool)
        mask[:, :, -1] = False
        return mask.ravel()
