# ddcore/physics/poisson.py
"""
3-D Poisson assembly on a structured lattice (periodic x/y, Dirichlet z).

Scaled strong form:
    -∇·( ε ∇V ) = CV · ρ / scaling_factor,      V = φ / V_T

Seven-point finite-difference stencil, row for interior node (i, j, k ≤ Nz):

    Σ_faces ε_f · V_P  -  Σ_faces ε_f · V_neighbor  =  rhs_P

- x/y neighbors wrap around the lateral rings (see discretization.indexing).
- k = 1 rows see the bottom plane, which is not an unknown; its term moves to
  the rhs (`+=`, it is a face flux into an unknown row).
- k = Nz+1 rows are Dirichlet: unit diagonal, no off-diagonals, rhs *set*
  to the top potential (the unknown is eliminated, not fluxed).

This module is *assembly only*: it produces a CSR matrix and a dense rhs;
solving is left to the caller (ddcore.solver.linear has a thin scipy adapter).

Triplet layout
--------------
Each coupling group owns a statically reserved slice of the (rows, cols,
vals) arrays, computed in closed form from the grid extents before any
entries are written. Groups never share a counter, so they can be filled in
any order or concurrently; the only barrier is the final COO → CSR
conversion, where duplicate (row, col) entries are summed.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np
import scipy.sparse as sp

from ..boundaries.contacts import BoundaryPlanes
from ..discretization.indexing import LinearIndexMap
from ..discretization.permittivity import PermittivityFaces
from ..errors import DimensionMismatch, check_shape
from ..geometry.grid import Grid3D
from ..utils import diagnostics as diag
from ..utils.logger import warn

__all__ = [
    "CouplingGroup",
    "PoissonAssembler",
    "net_charge",
    "potential_field",
]


# ----------------------------- Data containers ----------------------------- #
@dataclass(frozen=True, slots=True)
class CouplingGroup:
    """A block of matrix entries with its reserved slice of the triplet arrays."""
    name: str
    start: int
    count: int

    @property
    def stop(self) -> int:
        return self.start + self.count


# ----------------------------- Internal helpers ---------------------------- #
def _c64(x) -> np.ndarray:
    return np.ascontiguousarray(x, dtype=np.float64)


def net_charge(p: np.ndarray, n: Optional[np.ndarray] = None) -> np.ndarray:
    """Scaled net charge density: p - n (holes only when n is None)."""
    rho = _c64(p).copy()
    if n is not None:
        n = _c64(n)
        if n.shape != rho.shape:
            raise DimensionMismatch(f"p shape {rho.shape} != n shape {n.shape}")
        rho -= n
    return rho


def potential_field(solution: np.ndarray, grid: Grid3D) -> np.ndarray:
    """Reshape a solved vector into V[i-1, j-1, k-1] (linear-index order)."""
    x = _c64(solution)
    if x.size != grid.n_unknowns:
        raise DimensionMismatch(f"solution length {x.size}, expected {grid.n_unknowns}")
    return x.reshape(grid.shape)


# -------------------------------- Assembler -------------------------------- #
class PoissonAssembler:
    """
    Sparse Poisson operator + rhs for one device geometry.

    Parameters
    ----------
    grid           : lattice extents
    faces          : geometry-derived permittivity cache (reused across calls)
    CV             : rhs constant N dz^2 q / (eps0 V_T)
    scaling_factor : divides CV (the face coefficients carry the same factor)
    workers        : >1 fills the coupling groups on a thread pool
    """

    GROUP_ORDER = ("x_lower", "y_lower", "z_lower", "diagonal", "z_upper", "y_upper", "x_upper")

    def __init__(
        self,
        grid: Grid3D,
        faces: PermittivityFaces,
        CV: float,
        scaling_factor: float = 18.0,
        workers: int = 1,
        debug: bool = False,
    ) -> None:
        faces.validate(grid)
        self.grid = grid
        self.faces = faces
        self.CV = float(CV)
        self.scaling_factor = float(scaling_factor)
        workers = max(1, int(workers))
        if workers > len(self.GROUP_ORDER):
            warn(f"PoissonAssembler: {workers} workers requested, only {len(self.GROUP_ORDER)} coupling groups")
            workers = len(self.GROUP_ORDER)
        self.workers = workers
        self.debug = debug
        self.index_map = LinearIndexMap(grid)
        self.groups = self._plan_groups()
        self._matrix: Optional[sp.csr_matrix] = None

    @classmethod
    def from_parameters(cls, params, workers: int = 1, debug: bool = False) -> "PoissonAssembler":
        from ..utils.scaling import Scaling

        grid = Grid3D.from_cells(params.num_cell_x, params.num_cell_y, params.num_cell_z)
        faces = PermittivityFaces.uniform(
            grid, params.eps_active, params.dx, params.dy, params.dz,
            scaling_factor=params.scaling_factor,
        )
        CV = Scaling.from_parameters(params).poisson_constant(params.N_dos)
        return cls(grid, faces, CV, scaling_factor=params.scaling_factor, workers=workers, debug=debug)

    # ---- layout ---------------------------------------------------------

    def _plan_groups(self) -> Dict[str, CouplingGroup]:
        g = self.grid
        plane = g.n_dirichlet_rows
        counts = {
            "x_lower": g.n_interior_rows,
            "y_lower": g.n_interior_rows,
            "z_lower": plane * max(g.Nz - 1, 0),
            "diagonal": g.n_unknowns,
            "z_upper": g.n_interior_rows,
            "y_upper": g.n_interior_rows,
            "x_upper": g.n_interior_rows,
        }
        groups: Dict[str, CouplingGroup] = {}
        start = 0
        for name in self.GROUP_ORDER:
            groups[name] = CouplingGroup(name=name, start=start, count=counts[name])
            start += counts[name]
        return groups

    @property
    def n_triplets(self) -> int:
        return sum(grp.count for grp in self.groups.values())

    # ---- coupling groups ------------------------------------------------
    # Each returns (rows, cols, vals) for its own block; all indices come
    # from the closed-form map, never from a running counter.

    def _lateral(self, axis: int, upper: bool) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        im = self.index_map
        I, J, K = im.interior_nodes()
        here = im.index(I, J, K)
        there = im.neighbor(axis, I, J, K, step=+1)
        eps = self.faces.eps_x if axis == 0 else self.faces.eps_y
        # coefficient of the face between this node and its +1 neighbor,
        # stored on the neighbor (wrap partner on the seam)
        ni, nj, nk = im.coords(there)
        vals = -eps[ni - 1, nj - 1, nk - 1]
        if upper:
            return here, there, vals
        return there, here, vals

    def _x_lower(self):
        return self._lateral(0, upper=False)

    def _x_upper(self):
        return self._lateral(0, upper=True)

    def _y_lower(self):
        return self._lateral(1, upper=False)

    def _y_upper(self):
        return self._lateral(1, upper=True)

    def _z_lower(self):
        # rows k = 2..Nz; Dirichlet rows get no off-diagonal entries
        im = self.index_map
        I, J, K = im.nodes(k_max=self.grid.Nz - 1)
        vals = -self.faces.eps_z[I - 1, J - 1, K]
        return im.index(I, J, K + 1), im.index(I, J, K), vals

    def _z_upper(self):
        # rows k = 1..Nz; row Nz couples into the Dirichlet column
        im = self.index_map
        I, J, K = im.interior_nodes()
        vals = -self.faces.eps_z[I - 1, J - 1, K]
        return im.index(I, J, K), im.index(I, J, K + 1), vals

    def _diagonal(self):
        f = self.faces
        ex = f.eps_x + np.roll(f.eps_x, -1, axis=0)
        ey = f.eps_y + np.roll(f.eps_y, -1, axis=1)
        ez = f.eps_z + f.upper_z()
        d = ex + ey + ez
        d[:, :, -1] = 1.0  # Dirichlet rows
        idx = np.arange(self.grid.n_unknowns, dtype=np.int64)
        return idx, idx, d.ravel()

    def _group_builders(self) -> Dict[str, Callable]:
        return {
            "x_lower": self._x_lower,
            "y_lower": self._y_lower,
            "z_lower": self._z_lower,
            "diagonal": self._diagonal,
            "z_upper": self._z_upper,
            "y_upper": self._y_upper,
            "x_upper": self._x_upper,
        }

    # ---- matrix ---------------------------------------------------------

    def triplets(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """(rows, cols, vals) for the whole operator, groups in GROUP_ORDER."""
        self.faces.validate(self.grid)
        total = self.n_triplets
        rows = np.empty(total, dtype=np.int64)
        cols = np.empty(total, dtype=np.int64)
        vals = np.empty(total, dtype=np.float64)
        builders = self._group_builders()

        def fill(name: str) -> None:
            grp = self.groups[name]
            r, c, v = builders[name]()
            if r.size != grp.count:
                raise RuntimeError(f"group {name} produced {r.size} entries, reserved {grp.count}")
            rows[grp.start:grp.stop] = r
            cols[grp.start:grp.stop] = c
            vals[grp.start:grp.stop] = v

        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                # list() re-raises the first worker exception
                list(pool.map(fill, self.GROUP_ORDER))
        else:
            for name in self.GROUP_ORDER:
                fill(name)
        return rows, cols, vals

    def assemble_matrix(self) -> sp.csr_matrix:
        """CSR operator; built once per geometry and cached."""
        if self._matrix is None:
            rows, cols, vals = self.triplets()
            n = self.grid.n_unknowns
            A = sp.coo_matrix((vals, (rows, cols)), shape=(n, n)).tocsr()
            A.sum_duplicates()
            self._matrix = A
            if self.debug:
                diag.log_poisson_assembly(
                    n_unknowns=n,
                    nnz=int(A.nnz),
                    group_sizes={k: g.count for k, g in self.groups.items()},
                    workers=self.workers,
                )
        return self._matrix

    # ---- rhs ------------------------------------------------------------

    def boundary_planes(self, Va: float, Vt: float, V_bottom: float = 0.0) -> BoundaryPlanes:
        bc = BoundaryPlanes.from_applied_voltage(self.grid, Va, Vt, V_bottom=V_bottom)
        if self.debug:
            diag.log_boundary_planes(bc.bottom, bc.top, Va=Va)
        return bc

    def set_rhs(self, netcharge: np.ndarray, boundary: BoundaryPlanes) -> np.ndarray:
        """
        rhs = CV · netcharge / scaling_factor, then
          k = 1      rows: += ε_z(bottom face) · V_bottom
          k = Nz+1   rows:  = V_top
        netcharge may be shaped like the unknowns or flat in linear order.
        """
        g = self.grid
        rho = _c64(netcharge)
        if rho.ndim == 1:
            if rho.size != g.n_unknowns:
                raise DimensionMismatch(f"net charge length {rho.size}, expected {g.n_unknowns}")
            rho = rho.reshape(g.shape)
        else:
            check_shape("net charge", rho, g.shape)
        boundary.validate(g)

        rhs = (self.CV / self.scaling_factor) * rho
        rhs[:, :, 0] += self.faces.eps_z[:, :, 0] * boundary.bottom
        rhs[:, :, -1] = boundary.top
        out = np.ascontiguousarray(rhs).ravel()
        if self.debug:
            diag.log_poisson_rhs(out)
        return out

    def assemble(self, netcharge: np.ndarray, boundary: BoundaryPlanes) -> Tuple[sp.csr_matrix, np.ndarray]:
        """(A, rhs) for the current net charge and boundary planes."""
        rhs = self.set_rhs(netcharge, boundary)
        return self.assemble_matrix(), rhs
