import numpy as np
import pytest

from snwave.grid import BorderedGrid, BoundaryCondition
from snwave.operator import jacobi_update, laplacian, laplacian_at


def _random_grid(boundary, dtype=complex, w=7, h=5, seed=1):
    rng = np.random.default_rng(seed)
    g = BorderedGrid(w, h, 1, boundary, dtype=dtype)
    vals = rng.normal(size=(h, w))
    if np.dtype(dtype).kind == "c":
        vals = vals + 1j * rng.normal(size=(h, w))
    g.interior[...] = vals
    g.fill_border()
    return g


@pytest.mark.operator
@pytest.mark.quick
def test_vectorized_laplacian_matches_pointwise():
    qdrdr = 3.0
    for boundary in BoundaryCondition:
        g = _random_grid(boundary)
        L = laplacian(g, qdrdr)
        assert L.shape == (g.height, g.width)
        for y in range(g.height):
            for x in range(g.width):
                assert np.isclose(L[y, x], laplacian_at(g, x, y, qdrdr), rtol=0, atol=1e-12)


@pytest.mark.operator
@pytest.mark.quick
def test_laplacian_of_constant_is_zero():
    g = BorderedGrid(6, 4, 1, BoundaryCondition.WRAP)
    g.add(2.0)
    assert np.allclose(laplacian(g, 10.0), 0.0, rtol=0, atol=1e-12)


@pytest.mark.operator
@pytest.mark.quick
def test_plane_wave_is_eigenfunction():
    w, h = 16, 8
    qdrdr = 5.0
    g = BorderedGrid(w, h, 1, BoundaryCondition.WRAP, dtype=complex)
    k = 2.0 * np.pi / w
    g.interior[...] = np.exp(1j * k * np.arange(w))[np.newaxis, :]
    g.fill_border()
    # 轴向 2cos k - 2，对角 4cos k - 4
    eig = 0.5 * ((2.0 * np.cos(k) - 2.0) + (4.0 * np.cos(k) - 4.0) / np.sqrt(2.0)) * qdrdr
    assert np.allclose(laplacian(g, qdrdr), eig * g.interior, rtol=0, atol=1e-12)


@pytest.mark.operator
@pytest.mark.quick
def test_single_spike_stencil_weights():
    g = BorderedGrid(5, 5, 1, BoundaryCondition.ZERO)
    g.set(2, 2, 1.0)
    L = laplacian(g, 1.0)
    center = 0.5 * (-4.0 - 4.0 / np.sqrt(2.0))
    assert np.isclose(L[2, 2], center)
    assert np.isclose(L[2, 3], 0.5)
    assert np.isclose(L[1, 1], 0.5 / np.sqrt(2.0))
    assert np.isclose(L[0, 0], 0.0)
    assert np.isclose(L.sum(), 0.0, atol=1e-12)


@pytest.mark.operator
@pytest.mark.quick
def test_jacobi_update_five_point():
    g = _random_grid(BoundaryCondition.MIRROR, dtype=float)
    src = np.full((g.height, g.width), 2.0)
    dr = 0.5
    new_v = jacobi_update(g, src, dr)
    x, y = 3, 2
    expect = 0.25 * (g.get(x - 1, y) + g.get(x + 1, y) + g.get(x, y - 1) + g.get(x, y + 1) - 2.0 * dr * dr)
    assert np.isclose(new_v[y, x], expect)
    with pytest.raises(ValueError):
        jacobi_update(g, np.zeros((2, 2)), dr)


@pytest.mark.operator
@pytest.mark.quick
def test_borderless_grid_rejected():
    g = BorderedGrid(3, 3, 0)
    with pytest.raises(ValueError):
        laplacian(g, 1.0)
    with pytest.raises(ValueError):
        jacobi_update(g, np.zeros((3, 3)), 1.0)
