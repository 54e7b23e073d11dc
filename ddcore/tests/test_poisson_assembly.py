# -*- coding: utf-8 -*-
"""
3-D Poisson assembly: stencil structure (symmetry, row sums, Dirichlet rows),
wrap-around placement against a loop-built reference, and solved profiles.
"""
import numpy as np
import pytest

from ddcore.boundaries.contacts import BoundaryPlanes
from ddcore.discretization.indexing import LinearIndexMap
from ddcore.discretization.permittivity import PermittivityFaces
from ddcore.errors import DimensionMismatch
from ddcore.geometry.grid import Grid3D
from ddcore.io.config import DeviceParameters
from ddcore.physics.poisson import PoissonAssembler, net_charge, potential_field
from ddcore.solver.linear import solve_sparse


def _mk(Nx, Ny, Nz, eps_r=3.0, CV=36.0, workers=1, faces=None):
    g = Grid3D(Nx, Ny, Nz)
    if faces is None:
        faces = PermittivityFaces.uniform(g, eps_r, 1.0, 1.0, 1.0, scaling_factor=18.0)
    return PoissonAssembler(g, faces, CV=CV, scaling_factor=18.0, workers=workers)


def _random_faces(g, seed=3):
    rng = np.random.default_rng(seed)
    nx, ny, nz = g.shape
    eps = rng.uniform(2.0, 12.0, size=(nx, ny, nz + 1))
    return PermittivityFaces.from_field(g, eps, 1.0e-9, 2.0e-9, 1.5e-9, scaling_factor=18.0)


def _reference_dense(asm):
    """Straightforward per-node loop over the seven-point stencil."""
    g, f = asm.grid, asm.faces
    im = LinearIndexMap(g)
    nx, ny, nz = g.shape
    A = np.zeros((g.n_unknowns, g.n_unknowns))
    for i in range(1, nx + 1):
        for j in range(1, ny + 1):
            for k in range(1, nz + 1):
                r = im.index(i, j, k)
                if k == nz:
                    A[r, r] = 1.0
                    continue
                ip, jp = i % nx + 1, j % ny + 1
                im_, jm = (i - 2) % nx + 1, (j - 2) % ny + 1
                ex_lo, ex_hi = f.eps_x[i - 1, j - 1, k - 1], f.eps_x[ip - 1, j - 1, k - 1]
                ey_lo, ey_hi = f.eps_y[i - 1, j - 1, k - 1], f.eps_y[i - 1, jp - 1, k - 1]
                ez_lo, ez_hi = f.eps_z[i - 1, j - 1, k - 1], f.eps_z[i - 1, j - 1, k]
                A[r, r] += ex_lo + ex_hi + ey_lo + ey_hi + ez_lo + ez_hi
                A[r, im.index(im_, j, k)] -= ex_lo
                A[r, im.index(ip, j, k)] -= ex_hi
                A[r, im.index(i, jm, k)] -= ey_lo
                A[r, im.index(i, jp, k)] -= ey_hi
                if k > 1:
                    A[r, im.index(i, j, k - 1)] -= ez_lo
                A[r, im.index(i, j, k + 1)] -= ez_hi
    return A


@pytest.mark.parametrize("dims", [(2, 3, 4), (1, 1, 2), (0, 2, 3), (3, 0, 1)])
def test_matches_reference_stencil(dims):
    g = Grid3D(*dims)
    asm = _mk(*dims, faces=_random_faces(g))
    A = asm.assemble_matrix().toarray()
    np.testing.assert_allclose(A, _reference_dense(asm), rtol=1e-13, atol=1e-15)


def test_linear_profile_uniform_eps():
    for Nx, Ny in [(0, 0), (2, 3), (4, 1)]:
        Nz, V0 = 5, 4.0
        asm = _mk(Nx, Ny, Nz)
        g = asm.grid
        bc = BoundaryPlanes(bottom=np.zeros(g.plane_shape), top=np.full(g.plane_shape, V0))
        A, b = asm.assemble(np.zeros(g.shape), bc)
        V = potential_field(solve_sparse(A, b), g)
        expected = V0 * np.arange(1, Nz + 2) / (Nz + 1)
        np.testing.assert_allclose(V, np.broadcast_to(expected, g.shape), rtol=1e-10, atol=1e-12)


def test_two_row_system_single_lateral_node():
    asm = _mk(0, 0, 1)
    bc = BoundaryPlanes.from_applied_voltage(asm.grid, Va=1.0, Vt=0.025)
    A, b = asm.assemble(np.zeros(asm.grid.shape), bc)
    ez = 3.0 / 18.0
    np.testing.assert_allclose(A.toarray(), [[2.0 * ez, -ez], [0.0, 1.0]], atol=1e-15)
    V = solve_sparse(A, b)
    np.testing.assert_allclose(V, [20.0, 40.0], rtol=1e-12)


def test_half_potential_with_lateral_nodes():
    asm = _mk(1, 1, 1)
    bc = BoundaryPlanes.from_applied_voltage(asm.grid, Va=0.5, Vt=0.025)
    A, b = asm.assemble(np.zeros(asm.grid.shape), bc)
    V = potential_field(solve_sparse(A, b), asm.grid)
    np.testing.assert_allclose(V[:, :, 0], 10.0, rtol=1e-12)
    np.testing.assert_allclose(V[:, :, 1], 20.0, rtol=1e-12)


@pytest.mark.parametrize("random_eps", [False, True])
def test_interior_block_is_symmetric(random_eps):
    g = Grid3D(3, 2, 4)
    asm = _mk(3, 2, 4, faces=_random_faces(g) if random_eps else None)
    A = asm.assemble_matrix()
    idx = np.flatnonzero(asm.index_map.interior_mask())
    Ai = A[idx][:, idx]
    assert abs(Ai - Ai.T).max() < 1e-15


def test_row_sums_vanish_on_interior_rows():
    asm = _mk(2, 3, 4)
    g = asm.grid
    A = asm.assemble_matrix()
    sums = np.asarray(A.sum(axis=1)).ravel().reshape(g.shape)
    np.testing.assert_allclose(sums[:, :, 1:-1], 0.0, atol=1e-14)
    # k = 1 rows miss exactly their bottom-face coefficient (moved to rhs)
    np.testing.assert_allclose(sums[:, :, 0], asm.faces.eps_z[:, :, 0], rtol=1e-12)


def test_dirichlet_rows_hold_only_unit_diagonal():
    asm = _mk(2, 2, 3)
    A = asm.assemble_matrix().tocsr()
    for r in np.flatnonzero(~asm.index_map.interior_mask()):
        lo, hi = A.indptr[r], A.indptr[r + 1]
        assert hi - lo == 1
        assert A.indices[lo] == r and A.data[lo] == 1.0


def test_rhs_charge_bottom_and_top():
    asm = _mk(1, 2, 3, CV=36.0)
    g = asm.grid
    bc = BoundaryPlanes(bottom=np.full(g.plane_shape, 3.0), top=np.full(g.plane_shape, -7.0))
    rhs = asm.set_rhs(np.ones(g.shape), bc).reshape(g.shape)
    np.testing.assert_allclose(rhs[:, :, 1:-1], 2.0)
    np.testing.assert_allclose(rhs[:, :, 0], 2.0 + (3.0 / 18.0) * 3.0)
    np.testing.assert_array_equal(rhs[:, :, -1], -7.0)

    flat = asm.set_rhs(np.ones(g.n_unknowns), bc)
    np.testing.assert_array_equal(flat, rhs.ravel())


def test_charge_bends_potential():
    asm = _mk(1, 1, 6)
    g = asm.grid
    bc = BoundaryPlanes.from_applied_voltage(g, Va=0.0, Vt=0.025)
    A, b = asm.assemble(net_charge(np.full(g.shape, 0.5), np.zeros(g.shape)), bc)
    V = potential_field(solve_sparse(A, b), g)
    assert np.all(V[:, :, :-1] > 0.0)
    np.testing.assert_allclose(V[:, :, -1], 0.0, atol=1e-14)
    np.testing.assert_allclose(V, V[:1, :1, :] * np.ones(g.shape), rtol=1e-10)


def test_parallel_groups_match_sequential():
    g = Grid3D(3, 4, 5)
    faces = _random_faces(g)
    seq = _mk(3, 4, 5, faces=faces).triplets()
    par = _mk(3, 4, 5, faces=faces, workers=4).triplets()
    for a, b in zip(seq, par):
        np.testing.assert_array_equal(a, b)


def test_group_slices_partition_triplets():
    asm = _mk(2, 1, 3)
    groups = [asm.groups[name] for name in asm.GROUP_ORDER]
    assert groups[0].start == 0
    for prev, nxt in zip(groups, groups[1:]):
        assert prev.stop == nxt.start
    assert groups[-1].stop == asm.n_triplets

    rows, _, _ = asm.triplets()
    dirichlet = ~asm.index_map.interior_mask()
    for grp in groups:
        if grp.name == "diagonal":
            continue
        assert not np.any(dirichlet[rows[grp.start:grp.stop]])


def test_matrix_is_cached():
    asm = _mk(1, 1, 2)
    assert asm.assemble_matrix() is asm.assemble_matrix()


def test_dimension_mismatch():
    asm = _mk(1, 2, 3)
    g = asm.grid
    bc = BoundaryPlanes.from_applied_voltage(g, Va=1.0, Vt=0.025)
    with pytest.raises(DimensionMismatch):
        asm.set_rhs(np.zeros((2, 3, 3)), bc)
    with pytest.raises(DimensionMismatch):
        asm.set_rhs(np.zeros(g.n_unknowns + 1), bc)
    with pytest.raises(DimensionMismatch):
        asm.set_rhs(np.zeros(g.shape), BoundaryPlanes(bottom=np.zeros((2, 2)), top=np.zeros((2, 3))))
    with pytest.raises(DimensionMismatch):
        PoissonAssembler(Grid3D(2, 2, 3), asm.faces, CV=1.0)
    with pytest.raises(DimensionMismatch):
        net_charge(np.zeros(3), np.zeros(4))
    with pytest.raises(DimensionMismatch):
        potential_field(np.zeros(5), g)


def test_from_parameters():
    params = DeviceParameters(num_cell_x=3, num_cell_y=2, num_cell_z=4)
    asm = PoissonAssembler.from_parameters(params)
    assert (asm.grid.Nx, asm.grid.Ny, asm.grid.Nz) == (2, 1, 3)
    A = asm.assemble_matrix()
    assert A.shape == (asm.grid.n_unknowns, asm.grid.n_unknowns)
    np.testing.assert_allclose(asm.faces.eps_z, params.eps_active / params.scaling_factor)


def test_rhs_constant_from_parameters():
    from ddcore.utils.constants import EPS0, Q, thermal_voltage

    params = DeviceParameters(num_cell_x=2, num_cell_y=2, num_cell_z=3, N_dos=2e24, dz=1.5e-9)
    asm = PoissonAssembler.from_parameters(params)
    CV = params.N_dos * params.dz ** 2 * Q / (EPS0 * thermal_voltage(params.T_K))
    assert np.isclose(asm.CV, CV, rtol=1e-12)


def test_debug_logs_matrix_rhs_and_planes(capsys):
    g = Grid3D(1, 1, 2)
    faces = PermittivityFaces.uniform(g, 3.0, 1.0, 1.0, 1.0, scaling_factor=18.0)
    asm = PoissonAssembler(g, faces, CV=36.0, debug=True)
    bc = asm.boundary_planes(Va=0.5, Vt=0.025)
    asm.assemble(np.zeros(g.shape), bc)
    out = capsys.readouterr().out
    assert "[bc] Va=+0.500 V" in out
    assert f"[pois] matrix {g.n_unknowns}x{g.n_unknowns}" in out
    assert "[pois] rhs∈" in out


def test_worker_count_clamped_to_groups(capsys):
    asm = _mk(2, 2, 2, workers=32)
    assert asm.workers == len(PoissonAssembler.GROUP_ORDER)
    assert "WARNING" in capsys.readouterr().err
    seq = _mk(2, 2, 2).assemble_matrix()
    assert (asm.assemble_matrix() != seq).nnz == 0
