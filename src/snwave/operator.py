from __future__ import annotations

import numpy as np

from .grid import BorderedGrid

__all__ = [
    "laplacian_at",
    "laplacian",
    "jacobi_update",
]

_QSQRT2 = 1.0 / np.sqrt(2.0)


def _shifted(grid: BorderedGrid, dx: int, dy: int) -> np.ndarray:
    # 主矩形整体平移 (dx, dy) 后的视图，要求 |dx|, |dy| <= border
    b = grid.border
    return grid.frame[b + dy:b + dy + grid.height, b + dx:b + dx + grid.width]


def laplacian_at(grid: BorderedGrid, x: int, y: int, qdrdr: float):
    r"""单点的九点差分 Laplacian。

    轴向与对角两组邻点各自构成一个五点差分，对角一组按间距 :math:`\sqrt{2}\,\Delta r`
    缩放后取平均：

    .. math::
        s = f_{x+1,y}+f_{x-1,y}+f_{x,y-1}+f_{x,y+1}-4f_{x,y},\qquad
        s_d = f_{x+1,y+1}+f_{x+1,y-1}+f_{x-1,y+1}+f_{x-1,y-1}-4f_{x,y},

    .. math::
        \nabla^2 f \approx \tfrac{1}{2}\left(s + \frac{s_d}{\sqrt{2}}\right)\frac{1}{\Delta r^2}.

    Parameters
    ----------
    grid : BorderedGrid
        已调用过 :meth:`~snwave.grid.BorderedGrid.fill_border` 的网格，``border >= 1``。
    x, y : int
        主矩形内的坐标。
    qdrdr : float
        :math:`1/\Delta r^2`。
    """
    w4 = 4.0 * grid.get(x, y)
    s = grid.get(x + 1, y) + grid.get(x - 1, y) + grid.get(x, y - 1) + grid.get(x, y + 1) - w4
    sdiag = (
        grid.get(x + 1, y + 1) + grid.get(x + 1, y - 1)
        + grid.get(x - 1, y + 1) + grid.get(x - 1, y - 1) - w4
    )
    return 0.5 * (s + sdiag * _QSQRT2) * qdrdr


def laplacian(grid: BorderedGrid, qdrdr: float) -> np.ndarray:
    r"""对主矩形全部单元计算九点差分 Laplacian（与 :func:`laplacian_at` 同一模板）。

    Returns
    -------
    numpy.ndarray
        形状 ``(height, width)``，与 :attr:`~snwave.grid.BorderedGrid.interior` 对齐。

    Notes
    -----
    直接读取边框，调用前须保证边框已刷新。
    """
    if grid.border < 1:
        raise ValueError("Laplacian 需要 border >= 1 的网格")
    w4 = 4.0 * _shifted(grid, 0, 0)
    s = (
        _shifted(grid, 1, 0) + _shifted(grid, -1, 0)
        + _shifted(grid, 0, -1) + _shifted(grid, 0, 1) - w4
    )
    sdiag = (
        _shifted(grid, 1, 1) + _shifted(grid, 1, -1)
        + _shifted(grid, -1, 1) + _shifted(grid, -1, -1) - w4
    )
    return 0.5 * (s + sdiag * _QSQRT2) * qdrdr


def jacobi_update(grid: BorderedGrid, laplace: np.ndarray, dr: float) -> np.ndarray:
    r"""Poisson 方程 :math:`\nabla^2 V = L` 的一次 Jacobi 更新（五点模板）：

    .. math::
        V^{\text{new}}_{x,y} = \tfrac{1}{4}\left(V_{x-1,y}+V_{x+1,y}+V_{x,y-1}+V_{x,y+1} - L_{x,y}\,\Delta r^2\right).

    Parameters
    ----------
    grid : BorderedGrid
        当前迭代值，边框须已刷新。
    laplace : numpy.ndarray
        源项 :math:`L`，形状 ``(height, width)``。
    dr : float
        网格间距 :math:`\Delta r`。
    """
    if grid.border < 1:
        raise ValueError("Jacobi 更新需要 border >= 1 的网格")
    if laplace.shape != grid.interior.shape:
        raise ValueError("laplace 的形状必须与网格主矩形一致")
    return 0.25 * (
        _shifted(grid, -1, 0) + _shifted(grid, 1, 0)
        + _shifted(grid, 0, -1) + _shifted(grid, 0, 1)
        - laplace * dr * dr
    )
