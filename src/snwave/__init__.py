"""snwave 包
=================

二维平面上单粒子波函数与其自身引力势自洽耦合（Schrödinger–Newton 模型）的数值积分。

本包提供：

- 带边框的二维网格与 WRAP/MIRROR/ZERO 三种离散边界条件
- 九点差分 Laplacian 与五点 Jacobi 松弛模板
- 有界 Jacobi 迭代求解 Poisson 方程（含规范固定）
- 经典 RK4 时间推进、归一化、锥形扰动注入与逐点着色

注：本项目所有文档与注释均使用中文，Docstring 采用 Sphinx + NumPy 风格，公式使用 ``:math:`` 标记。
"""

from snwave.grid import BorderedGrid, BoundaryCondition, InvalidConfigurationError
from snwave.operator import laplacian, laplacian_at, jacobi_update
from snwave.poisson import PoissonResult, solve_poisson
from snwave.wave import Wave, WaveConfig
from snwave.color import phase_color, plane_color

__all__ = [
    "BorderedGrid",
    "BoundaryCondition",
    "InvalidConfigurationError",
    "laplacian",
    "laplacian_at",
    "jacobi_update",
    "PoissonResult",
    "solve_poisson",
    "Wave",
    "WaveConfig",
    "phase_color",
    "plane_color",
]

__version__ = "0.1.0"
