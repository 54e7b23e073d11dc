# ddcore/boundaries/contacts.py
"""
Contact boundary values for the scaled drift–diffusion equations.

Two kinds of boundary data live here:

- **Carrier densities at the contacts** (continuity Dirichlet values), from
  Boltzmann statistics with the contact work-function offsets:
      p_left  = N_HOMO exp(-phi_a / V_T) / N
      p_right = N_HOMO exp(-(E_gap - phi_c) / V_T) / N
      n_left  = N_LUMO exp(-(E_gap - phi_a) / V_T) / N
      n_right = N_LUMO exp(-phi_c / V_T) / N
  Energies are in eV, so dividing by V_T [V] is dimensionless.

- **Potential planes** for the 3D Poisson problem: the bottom plane (k = 0,
  not an unknown) and the top Dirichlet row (k = Nz+1), both per lateral node.

Public API
----------
    hole_contact_densities(params)
    electron_contact_densities(params)
    BoundaryPlanes
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..errors import check_shape
from ..geometry.grid import Grid3D

__all__ = ["hole_contact_densities", "electron_contact_densities", "BoundaryPlanes"]


def hole_contact_densities(params) -> Tuple[float, float]:
    """Scaled hole densities (left, right) at the two contacts."""
    Vt = params.Vt
    p_left = params.N_HOMO * np.exp(-params.phi_a / Vt) / params.N
    p_right = params.N_HOMO * np.exp(-(params.E_gap - params.phi_c) / Vt) / params.N
    return float(p_left), float(p_right)


def electron_contact_densities(params) -> Tuple[float, float]:
    """Scaled electron densities (left, right) at the two contacts."""
    Vt = params.Vt
    n_left = params.N_LUMO * np.exp(-(params.E_gap - params.phi_a) / Vt) / params.N
    n_right = params.N_LUMO * np.exp(-params.phi_c / Vt) / params.N
    return float(n_left), float(n_right)


@dataclass(slots=True)
class BoundaryPlanes:
    """
    Scaled boundary potentials, each shaped (Nx+1, Ny+1).

    bottom : plane below k = 1 (enters the rhs through the bottom face)
    top    : values imposed on the Dirichlet rows k = Nz+1
    """
    bottom: np.ndarray
    top: np.ndarray

    def validate(self, grid: Grid3D) -> None:
        check_shape("bottom boundary plane", self.bottom, grid.plane_shape)
        check_shape("top boundary plane", self.top, grid.plane_shape)

    @classmethod
    def from_applied_voltage(
        cls,
        grid: Grid3D,
        Va: float,
        Vt: float,
        V_bottom: float = 0.0,
    ) -> "BoundaryPlanes":
        """Uniform planes: top contact at Va, bottom contact at V_bottom (volts)."""
        shape = grid.plane_shape
        return cls(
            bottom=np.full(shape, float(V_bottom) / float(Vt)),
            top=np.full(shape, float(Va) / float(Vt)),
        )
