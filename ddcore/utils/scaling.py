"""
ddcore/utils/scaling.py

Nondimensional scaling for the Poisson/continuity assemblies.
Keep this in utils (not physics) so both assemblers share the same constants.

Conventions:
    potential   V_nd = V / V_T
    density     n_nd = n / N_ref
    length      all spacings measured in units of L_ref = dz
    mobility    mu_nd = mu / mu_ref

Typical usage:
    sc = Scaling.from_parameters(params)
    C  = sc.continuity_constant(params.dx)   # multiplies G in continuity rhs
    CV = sc.poisson_constant()               # multiplies net charge in Poisson rhs
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .constants import Q, EPS0, thermal_voltage


def _to_f64(x) -> np.ndarray:
    a = np.asarray(x, dtype=np.float64)
    if not a.flags["C_CONTIGUOUS"]:
        a = np.ascontiguousarray(a)
    return a


@dataclass
class Scaling:
    """Reference scales for nondimensionalization."""
    V_ref: float    # volts (thermal voltage)
    N_ref: float    # m^-3
    L_ref: float    # meters
    mu_ref: float   # m^2/(V s)

    def __post_init__(self) -> None:
        # Guard against zeros
        self.V_ref = float(self.V_ref or 1.0)
        self.N_ref = float(self.N_ref or 1.0)
        self.L_ref = float(self.L_ref or 1.0)
        self.mu_ref = float(self.mu_ref or 1.0)

    # ---- Variable scaling ---------------------------------------------------

    def scale_mobility(self, mu) -> np.ndarray | float:
        if np.ndim(mu) == 0:
            return float(mu) / self.mu_ref
        return _to_f64(mu) / self.mu_ref

    # ---- Equation constants -------------------------------------------------

    def continuity_constant(self, dx: float) -> float:
        """
        C = dx^2 / (V_T N_ref mu_ref): converts a generation rate [m^-3 s^-1]
        into the scaled continuity right-hand side.
        """
        return float(dx) ** 2 / (self.V_ref * self.N_ref * self.mu_ref)

    def poisson_constant(self, N_dos: float | None = None) -> float:
        """
        CV = N dz^2 q / (eps0 V_T): converts a scaled net charge into the
        scaled Poisson right-hand side (before the matrix scaling factor).
        """
        N = self.N_ref if N_dos is None else float(N_dos)
        return N * self.L_ref ** 2 * Q / (EPS0 * self.V_ref)

    # ---- Builders -----------------------------------------------------------

    @classmethod
    def from_parameters(cls, params) -> "Scaling":
        """Build from a DeviceParameters bundle (see ddcore.io.config)."""
        return cls(
            V_ref=thermal_voltage(params.T_K),
            N_ref=float(params.N),
            L_ref=float(params.dz),
            mu_ref=float(params.mobil),
        )
