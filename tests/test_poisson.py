import numpy as np
import pytest

from snwave.grid import BorderedGrid, BoundaryCondition
from snwave.poisson import solve_poisson


def _source(w, h, boundary, values):
    s = BorderedGrid(w, h, 1, boundary)
    s.interior[...] = values
    s.fill_border()
    return s


@pytest.mark.poisson
@pytest.mark.quick
def test_zero_source_converges_immediately():
    v = BorderedGrid(6, 5, 1, BoundaryCondition.WRAP)
    res = solve_poisson(v, np.zeros((5, 6)), dr=0.1)
    assert res.converged
    assert res.iterations == 1
    assert not v.data.any()


@pytest.mark.poisson
@pytest.mark.quick
def test_matches_analytic_mode_on_torus():
    w, h, dr = 9, 7, 0.2
    k = 2.0 * np.pi / w
    src = np.cos(k * np.arange(w))[np.newaxis, :].repeat(h, axis=0)
    v = BorderedGrid(w, h, 1, BoundaryCondition.WRAP)
    res = solve_poisson(v, _source(w, h, BoundaryCondition.WRAP, src), dr, tol=1e-16, maxiter=5000)
    assert res.converged
    # 五点模板下 cos 模式的本征值
    eig = (2.0 * np.cos(k) - 2.0) / (dr * dr)
    assert np.allclose(v.interior, src / eig, rtol=0, atol=1e-5 * np.max(np.abs(src / eig)))


@pytest.mark.poisson
@pytest.mark.quick
def test_gauge_fixed_to_zero_mean():
    for boundary in BoundaryCondition:
        w, h = 8, 6
        src = np.zeros((h, w))
        src[2, 3] = 5.0
        src[4, 6] = 1.0
        v = BorderedGrid(w, h, 1, boundary)
        res = solve_poisson(v, _source(w, h, boundary, src), dr=0.1)
        assert res.converged, boundary
        scale = np.max(np.abs(v.interior))
        assert scale > 0
        assert abs(v.sum()) <= 1e-10 * scale * w * h
        # 正源项对应势阱
        assert np.unravel_index(np.argmin(v.interior), v.interior.shape) == (2, 3)


@pytest.mark.poisson
@pytest.mark.quick
def test_uniform_source_on_torus_drifts_then_gauges_to_zero():
    w, h = 6, 4
    v = BorderedGrid(w, h, 1, BoundaryCondition.WRAP)
    res = solve_poisson(v, np.ones((h, w)), dr=0.5)
    assert res.converged
    assert res.iterations > 1
    assert np.allclose(v.interior, 0.0, atol=1e-12)


@pytest.mark.poisson
@pytest.mark.quick
def test_maxiter_reports_non_convergence():
    w, h = 8, 8
    src = np.zeros((h, w))
    src[4, 4] = 1.0
    v = BorderedGrid(w, h, 1, BoundaryCondition.ZERO)
    res = solve_poisson(v, src, dr=0.1, maxiter=1)
    assert not res.converged
    assert res.iterations == 1
    assert res.sqrerr > 1e-4 * res.norm
    assert abs(v.sum()) < 1e-12

    with pytest.raises(ValueError):
        solve_poisson(v, src, dr=0.1, maxiter=0)


@pytest.mark.poisson
@pytest.mark.quick
def test_verbose_progress(capsys):
    v = BorderedGrid(4, 4, 1, BoundaryCondition.MIRROR)
    solve_poisson(v, np.ones((4, 4)), dr=0.1, verbose=True, progress_every=10)
    out = capsys.readouterr().out
    assert out.startswith("[Poisson] iter=1 ")
