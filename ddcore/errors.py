# ddcore/errors.py
"""Exceptions raised by the assemblers."""
from __future__ import annotations

__all__ = ["DimensionMismatch", "check_length", "check_shape"]


class DimensionMismatch(ValueError):
    """Input field size disagrees with the configured grid."""


def check_length(name: str, arr, expected: int) -> None:
    n = int(getattr(arr, "size", len(arr)))
    if n != expected:
        raise DimensionMismatch(f"{name} has length {n}, expected {expected}")


def check_shape(name: str, arr, expected: tuple) -> None:
    shape = tuple(getattr(arr, "shape", ()))
    if shape != tuple(expected):
        raise DimensionMismatch(f"{name} has shape {shape}, expected {tuple(expected)}")
