# ddcore/io/config.py
# -*- coding: utf-8 -*-
"""
YAML → DeviceParameters helper.

Schema (minimal, example):

device:
  T_K: 296
  n_cells: 300            # 1D continuity: cells along the transport axis
  num_cell_x: 10          # 3D Poisson: cells per axis
  num_cell_y: 10
  num_cell_z: 20
  dx: 1.0e-9              # [m]
  dy: 1.0e-9
  dz: 1.0e-9
  N: 1.0e24               # reference density [m^-3]
  N_dos: 1.0e24
  N_HOMO: 1.0e24
  N_LUMO: 1.0e24
  mobil: 5.0e-6           # mobility scale [m^2/(V s)]
  p_mob_active: 4.5e-6
  n_mob_active: 4.5e-6
  eps_active: 3.0         # relative permittivity
  phi_a: 0.2              # anode work function offset [eV]
  phi_c: 0.1              # cathode work function offset [eV]
  E_gap: 1.5              # [eV]

Values are passed through as given; physical sanity is the caller's concern.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from ..utils.constants import thermal_voltage

__all__ = ["DeviceParameters", "load_parameters", "parameters_from_dict"]


@dataclass(slots=True)
class DeviceParameters:
    """Parameter bundle consumed by the assembler builders."""
    T_K: float = 296.0

    # grid
    n_cells: int = 300
    num_cell_x: int = 10
    num_cell_y: int = 10
    num_cell_z: int = 20
    dx: float = 1.0e-9
    dy: float = 1.0e-9
    dz: float = 1.0e-9

    # densities [m^-3]
    N: float = 1.0e24
    N_dos: float = 1.0e24
    N_HOMO: float = 1.0e24
    N_LUMO: float = 1.0e24

    # transport [m^2/(V s)]
    mobil: float = 5.0e-6
    p_mob_active: float = 4.5e-6
    n_mob_active: float = 4.5e-6

    # electrostatics
    eps_active: float = 3.0
    scaling_factor: float = 18.0

    # contacts / bands [eV]
    phi_a: float = 0.2
    phi_c: float = 0.1
    E_gap: float = 1.5

    # numerics
    bernoulli_eps: float = 1.0e-13

    @property
    def Vt(self) -> float:
        return thermal_voltage(self.T_K)


_INT_KEYS = {"n_cells", "num_cell_x", "num_cell_y", "num_cell_z"}


def _as_int(key: str, value) -> int:
    v = float(value)
    if not v.is_integer():
        raise ValueError(f"Device parameter '{key}' must be an integer, got {value!r}")
    return int(v)


def parameters_from_dict(data: dict) -> DeviceParameters:
    known = {f.name for f in fields(DeviceParameters)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown device parameter(s): {', '.join(unknown)}")
    kwargs = {k: (_as_int(k, v) if k in _INT_KEYS else float(v)) for k, v in data.items()}
    return DeviceParameters(**kwargs)


def load_parameters(path: Path) -> DeviceParameters:
    data = yaml.safe_load(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError("Top-level YAML must be a mapping")
    if "device" not in data:
        raise ValueError("Missing top-level key: device")
    dev = data["device"] or {}
    if not isinstance(dev, dict):
        raise ValueError("'device' must be a mapping")
    return parameters_from_dict(dev)
