"""
ddcore/utils/diagnostics.py

Targeted, low-noise diagnostics for the assemblies.
Called from the assemblers when debug=True.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np

from .logger import info


def _fmt_range(x: np.ndarray, name: str) -> str:
    x = np.asarray(x)
    if x.size == 0:
        return f"{name}: (empty)"
    return f"{name}∈[{np.min(x):+.3e},{np.max(x):+.3e}]"


def log_continuity_assembly(
    system,
    B1: np.ndarray,
    B2: np.ndarray,
    *,
    polarity: str,
    prefix: str = "[cont]",
) -> None:
    """Diagonal ranges plus the smallest Bernoulli coefficient (drift strength)."""
    msg = [
        f"{prefix} {polarity} N={system.size}",
        _fmt_range(system.main_diag, "main"),
        _fmt_range(system.upper_diag, "upper"),
        _fmt_range(system.lower_diag, "lower"),
        _fmt_range(system.rhs, "rhs"),
        f"min(B)={float(min(np.min(B1), np.min(B2))):.3e}",
    ]
    info(" | ".join(msg))


def log_poisson_assembly(
    *,
    n_unknowns: int,
    nnz: int,
    group_sizes: Dict[str, int],
    workers: int,
    prefix: str = "[pois]",
) -> None:
    groups = " ".join(f"{k}={v}" for k, v in group_sizes.items())
    info(f"{prefix} matrix {n_unknowns}x{n_unknowns} | nnz={nnz} | workers={workers} | {groups}")


def log_poisson_rhs(rhs: np.ndarray, *, prefix: str = "[pois]") -> None:
    info(f"{prefix} {_fmt_range(rhs, 'rhs')}")


def log_boundary_planes(
    bottom: np.ndarray,
    top: np.ndarray,
    *,
    Va: Optional[float] = None,
    prefix: str = "[bc]",
) -> None:
    va_txt = f" Va={Va:+.3f} V |" if Va is not None else ""
    info(f"{prefix}{va_txt} {_fmt_range(bottom, 'V_bottom')} | {_fmt_range(top, 'V_top')}")
