# ddcore/utils/constants.py
from __future__ import annotations

__all__ = ["Q", "K_B", "EPS0", "thermal_voltage"]

# Fundamental constants (SI)
Q    = 1.602176634e-19       # elementary charge [C]
K_B  = 1.380649e-23          # Boltzmann constant [J/K]
EPS0 = 8.8541878128e-12      # vacuum permittivity [F/m]


def thermal_voltage(T_K: float) -> float:
    """V_T = k T / q [V]."""
    return float(K_B * float(T_K) / Q)
