from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .grid import BorderedGrid
from .operator import jacobi_update

__all__ = ["PoissonResult", "solve_poisson"]


@dataclass
class PoissonResult:
    r"""Jacobi 松弛的结果记录。

    Attributes
    ----------
    converged : bool
        是否在 ``maxiter`` 次扫描内满足 :math:`\sum (V^{\text{new}}-V)^2 \le \text{tol}\sum (V^{\text{new}})^2`。
    iterations : int
        实际扫描次数。
    sqrerr : float
        最后一次扫描前后之差的平方和。
    norm : float
        最后一次迭代值的平方和。
    """

    converged: bool
    iterations: int
    sqrerr: float
    norm: float


def solve_poisson(
    potential: BorderedGrid,
    laplace: BorderedGrid | np.ndarray,
    dr: float,
    scratch: BorderedGrid | None = None,
    tol: float = 1e-4,
    maxiter: int = 10000,
    verbose: bool = False,
    progress_every: int = 100,
) -> PoissonResult:
    r"""由 Laplacian 场迭代求解 Poisson 方程 :math:`\nabla^2 V = L`，原地更新 ``potential``。

    以 ``potential`` 当前值为初值做 Jacobi 扫描（见 :func:`~snwave.operator.jacobi_update`），
    每次扫描后刷新新迭代值的边框并整帧复制回 ``potential``。收敛判据为相对平方误差：

    .. math::
        \sum_{x,y}\left(V^{\text{new}}_{x,y}-V_{x,y}\right)^2 \le \text{tol}\cdot\sum_{x,y}\left(V^{\text{new}}_{x,y}\right)^2.

    结束后（无论是否收敛）减去主矩形均值做规范固定，使 :math:`\sum V = 0`。

    Parameters
    ----------
    potential : BorderedGrid
        实数网格，``border >= 1``；既是初值也是输出。
    laplace : BorderedGrid or numpy.ndarray
        源项 :math:`L`，网格或形状 ``(height, width)`` 的数组。
    dr : float
        网格间距 :math:`\Delta r`。
    scratch : BorderedGrid, optional
        存放新迭代值的临时网格；若为 ``None`` 则内部创建一次。
    tol : float
        相对收敛阈值，默认 ``1e-4``。
    maxiter : int
        最大扫描次数，要求 :math:`\ge 1`。
    verbose : bool
        是否打印迭代进度。
    progress_every : int
        打印间隔。

    Returns
    -------
    PoissonResult
        收敛标志、扫描次数与最后的误差量。

    Notes
    -----
    - 周期（WRAP）或镜像（MIRROR）边界下，源项均值非零时方程无解，迭代值会整体漂移；
      相对判据依然会在漂移主导后满足，规范固定随即去掉这部分常数。
    - 未收敛时保留最后一次迭代值，由调用方决定如何处理。
    """
    if maxiter < 1:
        raise ValueError("maxiter 必须 >= 1")
    if isinstance(laplace, BorderedGrid):
        laplace = laplace.interior
    if scratch is None:
        scratch = BorderedGrid(
            potential.width, potential.height, potential.border, potential.boundary, dtype=potential.dtype
        )

    converged = False
    sqrerr = 0.0
    norm = 0.0
    for it in range(1, maxiter + 1):
        new_v = jacobi_update(potential, laplace, dr)
        diff = new_v - potential.interior
        sqrerr = float(np.sum(diff * diff))
        norm = float(np.sum(new_v * new_v))
        scratch.interior[...] = new_v
        scratch.fill_border()
        potential.assign(scratch)
        if verbose and (it == 1 or it % progress_every == 0):
            rel = sqrerr / norm if norm > 0 else 0.0
            print(f"[Poisson] iter={it} rel={rel:.3e}")
        if sqrerr <= norm * tol:
            converged = True
            break

    # 规范固定：零均值
    potential.add(-potential.sum() / (potential.width * potential.height))
    return PoissonResult(converged=converged, iterations=it, sqrerr=sqrerr, norm=norm)
