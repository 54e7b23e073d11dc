# ddcore/__init__.py
"""
Drift–diffusion discretization core: Scharfetter–Gummel continuity and
3-D periodic/Dirichlet Poisson assemblies.
"""
from __future__ import annotations

from .errors import DimensionMismatch
from .geometry.grid import Chain1D, Grid3D
from .discretization.indexing import LinearIndexMap
from .discretization.fluxes import bernoulli, bernoulli_pair
from .discretization.permittivity import PermittivityFaces
from .boundaries.contacts import BoundaryPlanes
from .physics.continuity import ContinuityAssembler, ContinuitySystem
from .physics.poisson import PoissonAssembler

__all__ = [
    "DimensionMismatch",
    "Chain1D",
    "Grid3D",
    "LinearIndexMap",
    "bernoulli",
    "bernoulli_pair",
    "PermittivityFaces",
    "BoundaryPlanes",
    "ContinuityAssembler",
    "ContinuitySystem",
    "PoissonAssembler",
]
