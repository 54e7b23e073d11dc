"""
ddcore/discretization/fluxes.py

Scharfetter–Gummel (SG) Bernoulli coefficients for the scaled continuity
equation, plus the matching scaled edge flux.

Sign convention (1-D chain):
- Nodes increase with index e-1 → e (left → right).
- Edge e joins nodes e-1 (left) and e (right).
- Scaled potential V = φ / V_T; Δ_e = V[e] - V[e-1].
- Coefficient pair per edge:
    B1 = B(Δ)  = Δ / (e^Δ - 1)
    B2 = B(-Δ) = B1 · e^Δ
  so that B2 - B1 = Δ. Electrons ("negative" polarity) use -Δ.
- Scaled edge flux (positive polarity, holes):
    F_e = μ_e ( c[e-1] · B1_e - c[e] · B2_e )
  which vanishes for the Boltzmann profile c ∝ exp(-V).

NOTE: the removable singularity at Δ = 0 is handled by returning the limit
      B = 1 for |Δ| < eps0 rather than relying on float cancellation.
"""

from __future__ import annotations

from typing import Literal, Tuple

import numpy as np

Polarity = Literal["positive", "negative"]

BERNOULLI_EPS = 1.0e-13

__all__ = [
    "Polarity",
    "BERNOULLI_EPS",
    "bernoulli",
    "bernoulli_pair",
    "edge_bernoulli",
    "sg_flux",
]


def _sign(polarity: Polarity) -> float:
    if polarity == "positive":
        return 1.0
    if polarity == "negative":
        return -1.0
    raise ValueError(f"Unknown polarity '{polarity}' (expected 'positive' or 'negative')")


def bernoulli(x: np.ndarray | float, eps0: float = BERNOULLI_EPS) -> np.ndarray | float:
    """
    Numerically stable Bernoulli function:
        B(x) = x / (exp(x) - 1)
    - |x| < eps0:  limiting value 1 (NaN is passed through)
    - x > 0:       x e^{-x} / (1 - e^{-x})   (no overflow for large x)
    - x < 0:       x / expm1(x)              (tends to |x| for large -x)
    Returns float64; scalar in, scalar out.
    """
    x_arr = np.asarray(x, dtype=np.float64)
    out = np.empty_like(x_arr)

    # NaN is not small, so it propagates through the direct forms
    small = np.abs(x_arr) < eps0
    out[small] = 1.0

    pos = ~small & (x_arr > 0.0)
    xp = x_arr[pos]
    out[pos] = xp * np.exp(-xp) / -np.expm1(-xp)

    neg = ~small & ~pos
    xn = x_arr[neg]
    out[neg] = xn / np.expm1(xn)

    return out if isinstance(x, np.ndarray) else float(out)


def bernoulli_pair(
    dV: np.ndarray | float,
    polarity: Polarity = "positive",
    eps0: float = BERNOULLI_EPS,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return (B1, B2) = (B(Δ), B(-Δ)) with Δ = ±dV by polarity.

    B(-Δ) is evaluated directly rather than as e^Δ B(Δ), which keeps both
    entries finite when |Δ| is large. The identities
        B2 - B1 = Δ,   B1(-Δ) = B2(Δ)
    hold to rounding.
    """
    d = _sign(polarity) * np.asarray(dV, dtype=np.float64)
    B1 = np.asarray(bernoulli(d, eps0), dtype=np.float64)
    B2 = np.asarray(bernoulli(-d, eps0), dtype=np.float64)
    return B1, B2


def edge_bernoulli(
    V: np.ndarray,
    polarity: Polarity = "positive",
    eps0: float = BERNOULLI_EPS,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Per-edge coefficient pairs along a chain of node potentials V (length M).

    Returns arrays of length M with entry e holding the pair for edge e
    (nodes e-1, e); entry 0 is unused and set to the Δ = 0 limit.
    """
    V = np.asarray(V, dtype=np.float64)
    dV = np.zeros_like(V)
    dV[1:] = np.diff(V)
    return bernoulli_pair(dV, polarity=polarity, eps0=eps0)


def sg_flux(
    c: np.ndarray,
    V: np.ndarray,
    mobility: np.ndarray | float,
    polarity: Polarity = "positive",
    eps0: float = BERNOULLI_EPS,
) -> np.ndarray:
    """
    Scaled SG flux on every edge of a chain (length M-1 for M nodes).

    Using the convention:
        F_e = μ_e ( c[e-1] B1_e - c[e] B2_e )
    with the polarity applied inside the Bernoulli pair. Multiply by
    q μ_ref V_T N_ref / dx for a current density.
    """
    c = np.asarray(c, dtype=np.float64)
    V = np.asarray(V, dtype=np.float64)
    B1, B2 = edge_bernoulli(V, polarity=polarity, eps0=eps0)
    mu = np.broadcast_to(np.asarray(mobility, dtype=np.float64), V.shape)
    return mu[1:] * (c[:-1] * B1[1:] - c[1:] * B2[1:])
