# ddcore/physics/continuity.py
"""
1D carrier continuity assembly (steady state) with Scharfetter–Gummel fluxes.

Scaled equation on a chain of N interior nodes (contacts at nodes 0 and N+1):

    F_{e+1} - F_e = -C G_i,      F_e = μ_e ( c[e-1] B1_e - c[e] B2_e )

which gives, per interior row i = 1..N,

    lower:  μ_i     B1_i      on c[i-1]
    main:  -(μ_i B2_i + μ_{i+1} B1_{i+1})
    upper:  μ_{i+1} B2_{i+1}  on c[i+1]
    rhs:   -C G_i  (rows 1 and N also move the known contact density over)

One assembler per carrier species; holes use polarity "positive" and
electrons "negative" (Bernoulli pairs evaluated at -Δ). Solving the returned
tridiagonal system is the caller's job (see ddcore.solver.linear).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import scipy.sparse as sp

from ..discretization.fluxes import BERNOULLI_EPS, Polarity, edge_bernoulli
from ..errors import DimensionMismatch, check_length
from ..geometry.grid import Chain1D
from ..utils import diagnostics as diag

__all__ = ["ContinuitySystem", "ContinuityAssembler"]


# ---------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------


@dataclass(slots=True)
class ContinuitySystem:
    """
    Assembled tridiagonal system for one species.

    main_diag  : (N,)
    upper_diag : (N-1,)  entry r couples row r to unknown r+1
    lower_diag : (N-1,)  entry r couples row r+1 to unknown r
    rhs        : (N,)
    """
    main_diag: np.ndarray
    upper_diag: np.ndarray
    lower_diag: np.ndarray
    rhs: np.ndarray

    def __iter__(self):
        return iter((self.main_diag, self.upper_diag, self.lower_diag, self.rhs))

    @property
    def size(self) -> int:
        return int(self.main_diag.size)

    def banded(self) -> np.ndarray:
        """(3, N) layout for scipy.linalg.solve_banded((1, 1), ...)."""
        ab = np.zeros((3, self.size), dtype=np.float64)
        ab[0, 1:] = self.upper_diag
        ab[1, :] = self.main_diag
        ab[2, :-1] = self.lower_diag
        return ab

    def to_sparse(self) -> sp.csr_matrix:
        if self.size == 1:
            return sp.csr_matrix(self.main_diag.reshape(1, 1))
        return sp.diags(
            [self.lower_diag, self.main_diag, self.upper_diag],
            offsets=[-1, 0, 1],
            shape=(self.size, self.size),
            format="csr",
        )


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------


def _c64(a) -> np.ndarray:
    return np.ascontiguousarray(np.asarray(a, dtype=np.float64))


# ---------------------------------------------------------------------
# Assembler
# ---------------------------------------------------------------------


class ContinuityAssembler:
    """
    Builds the SG tridiagonal system for a fixed carrier species.

    Parameters
    ----------
    n_interior : number of unknowns N
    mobility   : scaled mobility sampled on nodes 0..N+1 (scalar broadcast);
                 edge e uses mobility[e]
    C          : rhs normalization, dx^2 / (V_T N mu_ref)
    left_density, right_density : scaled contact densities (Dirichlet values)
    polarity   : "positive" (holes) or "negative" (electrons)
    """

    def __init__(
        self,
        n_interior: int,
        mobility: np.ndarray | float,
        C: float,
        left_density: float,
        right_density: float,
        polarity: Polarity = "positive",
        bernoulli_eps: float = BERNOULLI_EPS,
        debug: bool = False,
    ) -> None:
        if n_interior < 1:
            raise ValueError("Continuity chain needs at least one interior node.")
        self.n = int(n_interior)
        if np.ndim(mobility) == 0:
            mob = np.full(self.n + 2, float(mobility))
        else:
            mob = np.array(mobility, dtype=np.float64)
            check_length("mobility", mob, self.n + 2)
        mob.setflags(write=False)
        self.mobility = mob
        self.C = float(C)
        self.left_density = float(left_density)
        self.right_density = float(right_density)
        self.polarity = polarity
        self.bernoulli_eps = float(bernoulli_eps)
        self.debug = debug

    # ---- builders -------------------------------------------------------

    @classmethod
    def for_holes(cls, params, debug: bool = False) -> "ContinuityAssembler":
        from ..boundaries.contacts import hole_contact_densities
        from ..utils.scaling import Scaling

        sc = Scaling.from_parameters(params)
        p_left, p_right = hole_contact_densities(params)
        return cls(
            n_interior=Chain1D.from_cells(params.n_cells).n_interior,
            mobility=sc.scale_mobility(params.p_mob_active),
            C=sc.continuity_constant(params.dx),
            left_density=p_left,
            right_density=p_right,
            polarity="positive",
            bernoulli_eps=params.bernoulli_eps,
            debug=debug,
        )

    @classmethod
    def for_electrons(cls, params, debug: bool = False) -> "ContinuityAssembler":
        from ..boundaries.contacts import electron_contact_densities
        from ..utils.scaling import Scaling

        sc = Scaling.from_parameters(params)
        n_left, n_right = electron_contact_densities(params)
        return cls(
            n_interior=Chain1D.from_cells(params.n_cells).n_interior,
            mobility=sc.scale_mobility(params.n_mob_active),
            C=sc.continuity_constant(params.dx),
            left_density=n_left,
            right_density=n_right,
            polarity="negative",
            bernoulli_eps=params.bernoulli_eps,
            debug=debug,
        )

    # ---- assembly -------------------------------------------------------

    def bernoulli(self, potential: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Per-edge (B1, B2), indexed by edge 1..N+1 (entry 0 unused)."""
        V = _c64(potential)
        check_length("potential", V, self.n + 2)
        return edge_bernoulli(V, polarity=self.polarity, eps0=self.bernoulli_eps)

    def assemble(self, potential: np.ndarray, generation_rate: np.ndarray) -> ContinuitySystem:
        """
        Assemble (main, upper, lower, rhs) for scaled potential V (N+2 nodes,
        contacts included) and net generation rate G on the N interior nodes.
        """
        V = _c64(potential)
        G = _c64(generation_rate)
        if V.size != self.n + 2 or G.size != self.n:
            raise DimensionMismatch(
                f"potential/generation sizes ({V.size}, {G.size}) do not match "
                f"N={self.n} (expected ({self.n + 2}, {self.n}))"
            )

        B1, B2 = edge_bernoulli(V, polarity=self.polarity, eps0=self.bernoulli_eps)
        mu = self.mobility
        N = self.n

        # rows i = 1..N; edges i and i+1
        main = -(mu[1:N + 1] * B2[1:N + 1] + mu[2:N + 2] * B1[2:N + 2])
        # edges 2..N are shared by consecutive rows
        upper = mu[2:N + 1] * B2[2:N + 1]
        lower = mu[2:N + 1] * B1[2:N + 1]

        rhs = -self.C * G
        rhs[0] -= mu[1] * B1[1] * self.left_density
        rhs[-1] -= mu[N + 1] * B2[N + 1] * self.right_density

        system = ContinuitySystem(main_diag=main, upper_diag=upper, lower_diag=lower, rhs=rhs)
        if self.debug:
            diag.log_continuity_assembly(system, B1[1:], B2[1:], polarity=self.polarity)
        return system
