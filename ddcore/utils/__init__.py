# ddcore/utils/__init__.py
from __future__ import annotations
from .constants import Q, K_B, EPS0, thermal_voltage

__all__ = ["Q", "K_B", "EPS0", "thermal_voltage"]
