# ddcore/discretization/permittivity.py
"""
Face-averaged permittivity coefficients for the 3D Poisson stencil.

Built once per geometry and reused by every Poisson assembly of that device;
the arrays are frozen (read-only) so the per-iteration state (potential,
charge) cannot leak into them.

Layout (all arrays shaped like the unknowns, (Nx+1, Ny+1, Nz+1)):

    eps_x[i, j, k] : face between x-nodes i-1 and i (cyclic, so the face of
                     node 1 joins node Nx+1 and node 1)
    eps_y[i, j, k] : same in y
    eps_z[i, j, k] : face between z-nodes k-1 and k; k = 1 is the face to the
                     bottom boundary plane

Indices above are 1-based node coordinates; the arrays are 0-based.
Each coefficient is ε_face · (dz/d_axis)^2 / scaling_factor, which is the
form the scaled Poisson matrix uses directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from ..errors import DimensionMismatch, check_shape
from ..geometry.grid import Grid3D

__all__ = ["PermittivityFaces"]

Average = Literal["arithmetic", "harmonic"]


def _c64(x) -> np.ndarray:
    return np.ascontiguousarray(x, dtype=np.float64)


def _pair_average(a: np.ndarray, b: np.ndarray, mode: Average) -> np.ndarray:
    if mode == "arithmetic":
        return 0.5 * (a + b)
    if mode == "harmonic":
        denom = a + b
        out = np.maximum(a, b)
        ok = np.isfinite(denom) & (denom > 0.0)
        out[ok] = 2.0 * a[ok] * b[ok] / denom[ok]
        return out
    raise ValueError(f"Unknown average '{mode}' (expected 'arithmetic' or 'harmonic')")


@dataclass(frozen=True, eq=False)
class PermittivityFaces:
    grid: Grid3D
    eps_x: np.ndarray
    eps_y: np.ndarray
    eps_z: np.ndarray

    def __post_init__(self) -> None:
        for name in ("eps_x", "eps_y", "eps_z"):
            arr = np.array(getattr(self, name), dtype=np.float64)
            check_shape(name, arr, self.grid.shape)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    def validate(self, grid: Grid3D) -> None:
        """Fail fast if this cache was built for a different lattice."""
        if grid != self.grid:
            raise DimensionMismatch(
                f"permittivity faces built for {self.grid}, assembler grid is {grid}"
            )

    def upper_z(self) -> np.ndarray:
        """Face above each node (k → k+1); the top row uses its own face."""
        up = np.empty_like(self.eps_z)
        up[:, :, :-1] = self.eps_z[:, :, 1:]
        up[:, :, -1] = self.eps_z[:, :, -1]
        return up

    # ---- builders -------------------------------------------------------

    @classmethod
    def from_field(
        cls,
        grid: Grid3D,
        eps_nodes: np.ndarray,
        dx: float,
        dy: float,
        dz: float,
        scaling_factor: float = 18.0,
        average: Average = "arithmetic",
    ) -> "PermittivityFaces":
        """
        eps_nodes : relative permittivity, shape (Nx+1, Ny+1, Nz+2); the
                    k = 0 slice is the bottom boundary plane.
        """
        nx, ny, nz = grid.shape
        eps = _c64(eps_nodes)
        check_shape("permittivity field", eps, (nx, ny, nz + 1))
        body = eps[:, :, 1:]

        # periodic axes: neighbor of node 1 is the wrap partner
        fx = _pair_average(np.roll(body, 1, axis=0), body, average)
        fy = _pair_average(np.roll(body, 1, axis=1), body, average)
        fz = _pair_average(eps[:, :, :-1], body, average)

        rx = (dz * dz) / (dx * dx) / scaling_factor
        ry = (dz * dz) / (dy * dy) / scaling_factor
        rz = 1.0 / scaling_factor
        return cls(grid=grid, eps_x=rx * fx, eps_y=ry * fy, eps_z=rz * fz)

    @classmethod
    def uniform(
        cls,
        grid: Grid3D,
        eps_r: float,
        dx: float,
        dy: float,
        dz: float,
        scaling_factor: float = 18.0,
    ) -> "PermittivityFaces":
        nx, ny, nz = grid.shape
        eps = np.full((nx, ny, nz + 1), float(eps_r))
        return cls.from_field(grid, eps, dx, dy, dz, scaling_factor=scaling_factor)
