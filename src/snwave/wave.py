from __future__ import annotations

import warnings
from dataclasses import dataclass, field, fields
from typing import Callable

import numpy as np

from .constants import ELECTRON_MASS, GRAVITATIONAL_CONST, PLANCK_CONST, POTENTIAL_UNIT
from .grid import BorderedGrid, BoundaryCondition, InvalidConfigurationError
from .operator import laplacian
from .poisson import PoissonResult, solve_poisson

__all__ = [
    "WaveConfig",
    "Wave",
]

# RK4 各阶所需的临时网格数
_RK_STAGES = 4


@dataclass(frozen=True)
class WaveConfig:
    r"""单粒子波函数模拟的配置（SI 单位）。

    Attributes
    ----------
    width, height : int
        网格尺寸（单元数），均需 :math:`\ge 1`。
    boundary : BoundaryCondition
        所有网格共用的边界条件，默认环面 ``WRAP``。
    area : float
        模拟区域总面积 (m²)。
    mass : float
        粒子质量 (kg)，默认 1000 倍电子质量。
    dt : float
        时间步长 (s)。
    max_abs_factor : float
        单元振幅上限系数，:math:`|\psi|_{\max} = \text{max\_abs\_factor}/\text{area}`。
    planck : float
        Planck 常数 :math:`h`。
    gravitational : float
        引力常数 :math:`G`。
    potential_unit : float
        势场显示倍率 (1/J)，用于 :meth:`Wave.draw` 与 :meth:`Wave.add_potential_bump`。
    poisson_tol : float
        Poisson 松弛的相对收敛阈值。
    poisson_maxiter : int
        Poisson 松弛的最大扫描次数。

    Notes
    -----
    派生常量在构造时计算一次并随配置冻结：

    - :math:`\sqrt{A}`（``sarea``）、:math:`\Delta r = \sqrt{A/(W H)}`（``dr``）、:math:`1/\Delta r^2`（``qdrdr``）；
    - 动能项系数 :math:`h/(2\pi m)`（``hm``）与势能项系数 :math:`2\pi/h`（``qh``）；
    - 引力源项系数 :math:`4\pi G m`（``gravity_factor``）。
    """

    width: int
    height: int
    boundary: BoundaryCondition = BoundaryCondition.WRAP
    area: float = 1.0
    mass: float = 1000 * ELECTRON_MASS
    dt: float = 10.0
    max_abs_factor: float = 6.0
    planck: float = PLANCK_CONST
    gravitational: float = GRAVITATIONAL_CONST
    potential_unit: float = POTENTIAL_UNIT
    poisson_tol: float = 1e-4
    poisson_maxiter: int = 10000

    sarea: float = field(init=False, repr=False)
    dr: float = field(init=False, repr=False)
    qdrdr: float = field(init=False, repr=False)
    max_abs: float = field(init=False, repr=False)
    hm: float = field(init=False, repr=False)
    qh: float = field(init=False, repr=False)
    gravity_factor: float = field(init=False, repr=False)

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise InvalidConfigurationError(f"网格尺寸必须为正: width={self.width}, height={self.height}")
        if self.area <= 0 or self.mass <= 0 or self.planck <= 0:
            raise InvalidConfigurationError("area, mass, planck 必须为正")
        if self.poisson_maxiter < 1:
            raise InvalidConfigurationError("poisson_maxiter 必须 >= 1")
        dr = float(np.sqrt(self.area / (self.width * self.height)))
        derived = {
            "sarea": float(np.sqrt(self.area)),
            "dr": dr,
            "qdrdr": 1.0 / (dr * dr),
            "max_abs": self.max_abs_factor / self.area,
            "hm": self.planck / (2.0 * np.pi * self.mass),
            "qh": 2.0 * np.pi / self.planck,
            "gravity_factor": 4.0 * np.pi * self.gravitational * self.mass,
        }
        for name, value in derived.items():
            object.__setattr__(self, name, value)


class Wave:
    r"""单个非相对论粒子的波函数，与其自身概率分布产生的 Newton 引力势自洽耦合。

    波函数按离散化的含时 Schrödinger 方程演化：

    .. math::
        \frac{\partial\psi}{\partial t} = -i\left(\frac{2\pi}{h}\,V\psi - \frac{h}{2\pi m}\nabla^2\psi\right),
        \qquad V = V_{\text{static}} + V_{\text{dyn}},

    动态势满足 Poisson 方程 :math:`\nabla^2 V_{\text{dyn}} = 4\pi G m\,|\psi|`，每步由 Jacobi 松弛求解。

    Parameters
    ----------
    width, height : int
        网格尺寸。
    **params
        传给 :class:`WaveConfig` 的其余配置项。

    Attributes
    ----------
    cfg : WaveConfig
        冻结的配置与派生常量。
    psi : BorderedGrid
        复波函数网格。
    potential : BorderedGrid
        静态势，由 :meth:`add_potential_bump` 逐点取最大值累积。
    dyn_potential : BorderedGrid
        动态（引力）势，零均值。
    last_poisson : PoissonResult or None
        最近一次 Poisson 求解的结果。

    Notes
    -----
    - 所有网格边框宽度为 1（模板半径），边界条件取自配置。
    - 初态为单位振幅平面波 :math:`\psi(x, y) = e^{2\pi i x/W}`。
    - 单线程、单写者：不要并发调用修改状态的方法或在其间调用 :meth:`draw`。
    """

    def __init__(self, width: int, height: int, **params):
        self.cfg = WaveConfig(width=width, height=height, **params)
        boundary = self.cfg.boundary
        self.width = self.cfg.width
        self.height = self.cfg.height
        self.psi = BorderedGrid(self.width, self.height, 1, boundary, dtype=complex)
        self.potential = BorderedGrid(self.width, self.height, 1, boundary, dtype=float)
        self.dyn_potential = BorderedGrid(self.width, self.height, 1, boundary, dtype=float)
        self._tmp_psi = [
            BorderedGrid(self.width, self.height, 1, boundary, dtype=complex) for _ in range(_RK_STAGES)
        ]
        self._tmp_potential = BorderedGrid(self.width, self.height, 1, boundary, dtype=float)
        self._tmp_real = BorderedGrid(self.width, self.height, 1, boundary, dtype=float)
        self.last_poisson: PoissonResult | None = None

        x = np.arange(self.width)
        phase = np.exp(2j * np.pi * x / self.width)
        self.psi.interior[...] = phase[np.newaxis, :]
        self.psi.fill_border()
        self.potential.fill_border()

    @classmethod
    def from_config(cls, cfg: WaveConfig) -> "Wave":
        """由现成的 :class:`WaveConfig` 构造。"""
        params = {
            f.name: getattr(cfg, f.name)
            for f in fields(cfg)
            if f.init and f.name not in ("width", "height")
        }
        return cls(cfg.width, cfg.height, **params)

    def d_psi(self, laplace_psi, psi, v):
        r"""时间导数 :math:`-i\left(q_h V\psi - h_m \nabla^2\psi\right)`，逐点或对数组均适用。"""
        return -1j * (self.cfg.qh * v * psi - self.cfg.hm * laplace_psi)

    def _calc_k(self, newk: BorderedGrid, oldk: BorderedGrid, factor: float) -> None:
        # 在 psi + factor*oldk 处求导；Laplacian 线性，直接组合两者的 Laplacian
        qdrdr = self.cfg.qdrdr
        laplace_psi = laplacian(self.psi, qdrdr)
        psi = self.psi.interior
        if factor != 0.0:
            laplace_psi = laplace_psi + factor * laplacian(oldk, qdrdr)
            psi = psi + factor * oldk.interior
        v = self.potential.interior + self.dyn_potential.interior
        newk.interior[...] = self.d_psi(laplace_psi, psi, v)
        newk.fill_border()

    def _calc_laplace_v(self, laplace_v: BorderedGrid) -> None:
        # 引力势的源项：4 pi G m |psi|
        laplace_v.interior[...] = self.cfg.gravity_factor * np.abs(self.psi.interior)
        laplace_v.fill_border()

    def update_potential(self, verbose: bool = False) -> PoissonResult:
        """由当前波函数重算动态势。未收敛时发出 :class:`RuntimeWarning` 并保留最后迭代值。"""
        self._calc_laplace_v(self._tmp_real)
        res = solve_poisson(
            self.dyn_potential,
            self._tmp_real,
            self.cfg.dr,
            scratch=self._tmp_potential,
            tol=self.cfg.poisson_tol,
            maxiter=self.cfg.poisson_maxiter,
            verbose=verbose,
        )
        if not res.converged:
            warnings.warn(
                f"Poisson 松弛在 {res.iterations} 次扫描内未收敛 "
                f"(sqrerr={res.sqrerr:.3e}, norm={res.norm:.3e})",
                RuntimeWarning,
                stacklevel=2,
            )
        self.last_poisson = res
        return res

    def evolve(self) -> PoissonResult:
        r"""推进一个时间步：先更新动态势，再以经典 RK4 推进 :math:`\psi`。

        .. math::
            \psi \leftarrow \psi + \frac{\Delta t}{6}\left(k_1 + 2k_2 + 2k_3 + k_4\right),

        其中 :math:`k_1, k_2, k_3, k_4` 分别在 :math:`\psi`、:math:`\psi+\tfrac{\Delta t}{2}k_1`、
        :math:`\psi+\tfrac{\Delta t}{2}k_2`、:math:`\psi+\Delta t\,k_3` 处求值。

        Returns
        -------
        PoissonResult
            本步 Poisson 求解的结果。
        """
        res = self.update_potential()
        dt = self.cfg.dt
        k = self._tmp_psi
        # 参考：https://en.wikipedia.org/wiki/Runge-Kutta_methods
        self._calc_k(k[0], self.psi, 0.0)
        self._calc_k(k[1], k[0], 0.5 * dt)
        self._calc_k(k[2], k[1], 0.5 * dt)
        self._calc_k(k[3], k[2], dt)
        avg = (k[0].interior + 2.0 * k[1].interior + 2.0 * k[2].interior + k[3].interior) / 6.0
        self.psi.interior[...] += dt * avg
        self.psi.fill_border()
        return res

    def run(self, steps: int, verbose: bool = False, progress_every: int = 10) -> int:
        """连续调用 :meth:`evolve` ``steps`` 次，返回未收敛的 Poisson 求解次数。"""
        failures = 0
        for step in range(1, steps + 1):
            res = self.evolve()
            if not res.converged:
                failures += 1
            if verbose and (step == 1 or step % progress_every == 0):
                print(
                    f"[Wave] step={step} P={self.total_probability():.6f} "
                    f"poisson_iter={res.iterations}"
                )
        return failures

    def total_probability(self) -> float:
        r""":math:`\sum_{x,y}|\psi_{x,y}|^2\,\Delta r^2`。"""
        psi = self.psi.interior
        return float(np.sum(psi.real ** 2 + psi.imag ** 2)) * self.cfg.dr ** 2

    def normalize(self) -> None:
        r"""逐点截断振幅后归一化，使 :math:`\sum|\psi|^2\Delta r^2 = 1`。

        先将 :math:`|\psi| > |\psi|_{\max}` 的单元按相位不变缩放到 :math:`|\psi|_{\max}`，
        截断后的场再参与积分；若积分恰为零则跳过缩放。
        """
        psi = self.psi.interior
        max_abs = self.cfg.max_abs
        nc = psi.real ** 2 + psi.imag ** 2
        over = nc > max_abs * max_abs
        if np.any(over):
            psi[over] *= max_abs / np.sqrt(nc[over])
            nc[over] = max_abs * max_abs
        a = float(np.sqrt(np.sum(nc))) * self.cfg.dr
        if a > 0:
            psi *= 1.0 / a
        self.psi.fill_border()

    def _bump_rows(self, x: int, y: int, size: int):
        # 逐行给出锥形扰动覆盖的 (环面取模后的) 行号、列号与权重 1 - sqrt(rr)；
        # 每行只分配 O(size) 的数组
        if size < 0:
            raise ValueError(f"扰动半径必须非负: size={size}")
        dx = np.arange(-size, size + 1)
        # size == 0 时只有中心点，rr 取 0
        scale = float(max(size * size, 1))
        for dy in range(-size, size + 1):
            rr = (dx * dx + dy * dy) / scale
            inside = rr < 1.0
            if not inside.any():
                continue
            yield (y + dy) % self.height, (x + dx[inside]) % self.width, 1.0 - np.sqrt(rr[inside])

    def add_bump(self, x: int, y: int, c: complex, size: int) -> None:
        r"""在 :math:`(x, y)` 处叠加 :math:`c` 倍的锥形扰动：

        .. math::
            \psi_{x+dx,y+dy} \mathrel{+}= \frac{c}{\sqrt{A}}\left(1 - \sqrt{r_r}\right),\quad
            r_r = \frac{dx^2+dy^2}{\text{size}^2} < 1.

        坐标总按环面取模，与边界条件无关；环绕后重叠的偏移会累加。
        耗时随 ``size**2`` 增长，额外内存只随 ``size`` 线性增长。
        """
        amp = c / self.cfg.sarea
        psi = self.psi.interior
        for my, mx, weight in self._bump_rows(x, y, size):
            np.add.at(psi[my], mx, amp * weight)
        self.psi.fill_border()

    def add_potential_bump(self, x: int, y: int, c: float, size: int) -> None:
        """与 :meth:`add_bump` 形状相同，但按逐点最大值并入静态势，形成持久的平台。"""
        c = c / (self.cfg.potential_unit * self.cfg.area * self.cfg.dt)
        v = self.potential.interior
        for my, mx, weight in self._bump_rows(x, y, size):
            np.maximum.at(v[my], mx, c * weight)
        self.potential.fill_border()

    def draw(self, buffer, color_fn: Callable, vectorized: bool = False) -> None:
        r"""按行优先顺序（下标 ``x + width*y``）把每个单元的颜色写入 ``buffer``。

        颜色由 ``color_fn(psi * sqrt(A), potential_unit * V * sqrt(A) * dt)`` 给出，
        其中 :math:`V` 为静态势与动态势之和。

        Parameters
        ----------
        buffer : numpy.ndarray or list
            调用方预先分配、长度恰为 ``width*height`` 的一维缓冲区。
        color_fn : callable
            ``(complex, float) -> int`` 的纯函数，见 :mod:`snwave.color`。
        vectorized : bool
            若为 ``True``，``color_fn`` 以形状 ``(height, width)`` 的数组整体调用一次；
            此时会分配两个整网格大小的临时数组。逐点路径不做整网格分配。
        """
        n = self.width * self.height
        if len(buffer) != n:
            raise ValueError(f"buffer 长度必须为 width*height={n}，实际为 {len(buffer)}")
        sarea = self.cfg.sarea
        vscale = self.cfg.potential_unit * sarea * self.cfg.dt
        psi = self.psi.interior
        static = self.potential.interior
        dyn = self.dyn_potential.interior
        if vectorized:
            colors = np.ravel(color_fn(psi * sarea, (static + dyn) * vscale))
            if isinstance(buffer, np.ndarray):
                buffer[:] = colors
            else:
                buffer[:] = colors.tolist()
            return
        i = 0
        for y in range(self.height):
            for x in range(self.width):
                v = (float(static[y, x]) + float(dyn[y, x])) * vscale
                buffer[i] = color_fn(complex(psi[y, x]) * sarea, v)
                i += 1
