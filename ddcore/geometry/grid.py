# ddcore/geometry/grid.py
"""
Structured grids for the continuity (1D chain) and Poisson (3D lattice) assemblies.

Index conventions
-----------------
Chain1D:
    nodes 0..N+1, where 0 and N+1 are the contacts (not unknowns).
    Edge e (e = 1..N+1) joins nodes e-1 and e.

Grid3D:
    i ∈ [1, Nx+1], j ∈ [1, Ny+1], k ∈ [1, Nz+1].
    x and y are periodic rings of Nx+1 and Ny+1 nodes; the last plane
    (i = Nx+1 or j = Ny+1) is the wrap partner of the first.
    k = 1..Nz are interior rows, k = Nz+1 is the top Dirichlet row.
    The bottom boundary plane (k = 0) is not part of the unknown vector.

No physics here: only extents and counts.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

__all__ = ["Chain1D", "Grid3D"]


@dataclass(frozen=True, slots=True)
class Chain1D:
    """Ordered chain of N interior nodes plus two boundary nodes."""
    n_interior: int

    def __post_init__(self) -> None:
        if self.n_interior < 1:
            raise ValueError("Chain1D needs at least one interior node.")

    @property
    def n_nodes(self) -> int:
        return self.n_interior + 2

    @property
    def n_edges(self) -> int:
        return self.n_interior + 1

    @classmethod
    def from_cells(cls, n_cells: int) -> "Chain1D":
        """n_cells cells → n_cells - 1 interior nodes (the end nodes are contacts)."""
        return cls(int(n_cells) - 1)


@dataclass(frozen=True, slots=True)
class Grid3D:
    """
    Extents (Nx, Ny, Nz) of the Poisson lattice.

    Nx = Ny = 0 is allowed: the periodic ring collapses to a single,
    self-wrapping node. Nz = 0 leaves only Dirichlet rows.
    """
    Nx: int
    Ny: int
    Nz: int

    def __post_init__(self) -> None:
        if min(self.Nx, self.Ny, self.Nz) < 0:
            raise ValueError("Grid extents must be non-negative.")

    @classmethod
    def from_cells(cls, num_cell_x: int, num_cell_y: int, num_cell_z: int) -> "Grid3D":
        return cls(int(num_cell_x) - 1, int(num_cell_y) - 1, int(num_cell_z) - 1)

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Shape of a node field over the unknowns, (Nx+1, Ny+1, Nz+1)."""
        return (self.Nx + 1, self.Ny + 1, self.Nz + 1)

    @property
    def plane_shape(self) -> Tuple[int, int]:
        """Shape of a lateral (i, j) plane, e.g. a boundary potential plane."""
        return (self.Nx + 1, self.Ny + 1)

    @property
    def n_unknowns(self) -> int:
        nx, ny, nz = self.shape
        return nx * ny * nz

    @property
    def n_interior_rows(self) -> int:
        """Rows with k = 1..Nz (everything except the Dirichlet rows)."""
        return (self.Nx + 1) * (self.Ny + 1) * self.Nz

    @property
    def n_dirichlet_rows(self) -> int:
        return (self.Nx + 1) * (self.Ny + 1)
