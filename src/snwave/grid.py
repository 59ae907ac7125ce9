from __future__ import annotations

from enum import Enum

import numpy as np

__all__ = [
    "BoundaryCondition",
    "InvalidConfigurationError",
    "BorderedGrid",
    "wrap_index",
    "mirror_index",
]


class InvalidConfigurationError(ValueError):
    """网格或波函数的尺寸/边框/边界条件组合非法。"""


class BoundaryCondition(Enum):
    r"""离散边界条件。

    以宽度为 5、边框为 2 的一行 ``3 4 5 6 7`` 为例：

    - ``WRAP``：环面周期延拓 ``6 7|3 4 5 6 7|3 4``
    - ``MIRROR``：边缘镜像 ``4 3|3 4 5 6 7|7 6``
    - ``ZERO``：边框恒为零 ``0 0|3 4 5 6 7|0 0``
    """

    WRAP = "wrap"
    MIRROR = "mirror"
    ZERO = "zero"


def wrap_index(a: int, m: int) -> int:
    """周期取模，结果总在 ``[0, m)`` 内（Python 的 ``%`` 对负数已满足）。"""
    return a % m


def mirror_index(a: int, m: int) -> int:
    r"""镜像折返映射：以 :math:`2m` 为周期取模，再将 :math:`[m, 2m)` 反射回 :math:`[0, m)`。

    等价于在两侧边界反复做镜面反射，例如 :math:`m=3` 时
    ``-1 -> 0``，``-2 -> 1``，``3 -> 2``，``5 -> 0``，``6 -> 0``。
    """
    a %= 2 * m
    if a >= m:
        a = 2 * m - 1 - a
    return a


class BorderedGrid:
    r"""带边框的二维矩形网格，元素类型由 NumPy ``dtype`` 决定（实数、复数或整数）。

    主矩形（``width`` × ``height``）外围包有一圈宽度为 ``border`` 的边框，二者合称
    frame，存放在一块连续的一维缓冲区中。写入主矩形之后调用 :meth:`fill_border`，
    边框即按边界条件被填充；之后对距主矩形不超过 ``border`` 的任意点调用 :meth:`get`
    都能得到正确的值，邻域计算无需对边缘做特殊处理。

    典型用法是作为元胞自动机的一帧，边框宽度取邻域半径：

    >>> g = BorderedGrid(5, 10, 2, BoundaryCondition.WRAP, dtype=int)
    >>> g.set(1, 9, 7)
    >>> g.fill_border()
    >>> [int(g.get(x, y)) for x, y in [(6, -1), (1, 9), (6, 9)]]
    [7, 7, 7]

    Parameters
    ----------
    width, height : int
        主矩形尺寸，要求均 :math:`\ge 1`。
    border : int
        边框宽度，要求 :math:`\ge 0`；``WRAP``/``MIRROR`` 下还要求不超过 ``width`` 与 ``height``。
    boundary : BoundaryCondition
        边界条件，创建后不可更改。
    dtype : numpy.dtype, optional
        元素类型，默认 ``float``。

    Raises
    ------
    InvalidConfigurationError
        尺寸或边框不满足上述前提。

    Notes
    -----
    - 主矩形中的值是权威数据，边框是派生数据：批量写入后必须调用 :meth:`fill_border`。
    - ``ZERO`` 边界下边框在创建后从不写入，始终为零元。
    - :attr:`interior` 的形状为 ``(height, width)``，行下标为 ``y``。
    """

    def __init__(
        self,
        width: int,
        height: int,
        border: int,
        boundary: BoundaryCondition = BoundaryCondition.WRAP,
        dtype=float,
    ):
        if width < 1 or height < 1:
            raise InvalidConfigurationError(f"网格尺寸必须为正: width={width}, height={height}")
        if border < 0:
            raise InvalidConfigurationError(f"边框宽度必须非负: border={border}")
        if boundary is not BoundaryCondition.ZERO and (width < border or height < border):
            raise InvalidConfigurationError(
                f"{boundary.name} 边界要求 width, height >= border: "
                f"width={width}, height={height}, border={border}"
            )
        self._width = int(width)
        self._height = int(height)
        self._border = int(border)
        self._boundary = boundary
        self._framew = 2 * self._border + self._width
        self._frameh = 2 * self._border + self._height
        self._data = np.zeros(self._framew * self._frameh, dtype=dtype)
        # 主矩形首个单元在缓冲区中的偏移
        self._cell0 = self._border * self._framew + self._border

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def border(self) -> int:
        return self._border

    @property
    def boundary(self) -> BoundaryCondition:
        return self._boundary

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def framew(self) -> int:
        """frame 宽度：``width + 2*border``。"""
        return self._framew

    @property
    def frameh(self) -> int:
        """frame 高度：``height + 2*border``。"""
        return self._frameh

    @property
    def framesize(self) -> int:
        return self._framew * self._frameh

    @property
    def data(self) -> np.ndarray:
        """一维连续缓冲区（含边框）。"""
        return self._data

    @property
    def frame(self) -> np.ndarray:
        """整个 frame 的二维视图，形状 ``(frameh, framew)``。"""
        return self._data.reshape(self._frameh, self._framew)

    @property
    def interior(self) -> np.ndarray:
        """主矩形的可写二维视图，形状 ``(height, width)``。"""
        b = self._border
        return self.frame[b:b + self._height, b:b + self._width]

    def __repr__(self) -> str:
        return (
            f"BorderedGrid(width={self._width}, height={self._height}, border={self._border}, "
            f"boundary={self._boundary.name}, dtype={self.dtype})"
        )

    def index(self, x: int, y: int) -> int:
        r"""逻辑坐标 :math:`(x, y)` 到缓冲区线性偏移：:math:`(y+b)\,W_f + (x+b)`。

        不做越界检查；仅当点到主矩形的距离不超过 ``border`` 时结果有意义。
        """
        return self._cell0 + x + y * self._framew

    def get(self, x: int, y: int):
        """读取距主矩形不超过 ``border`` 的点，不做检查。"""
        return self._data[self._cell0 + x + y * self._framew]

    def set(self, x: int, y: int, value) -> None:
        """写入主矩形中的点，不做检查。"""
        self._data[self._cell0 + x + y * self._framew] = value

    def _remap(self, a: int, m: int) -> int | None:
        # 返回 None 表示 ZERO 边界下的越界点
        if 0 <= a < m:
            return a
        if self._boundary is BoundaryCondition.WRAP:
            return wrap_index(a, m)
        if self._boundary is BoundaryCondition.MIRROR:
            return mirror_index(a, m)
        return None

    def safe_get(self, x: int, y: int):
        """读取任意整数坐标；越界坐标按边界条件映射，``ZERO`` 下返回零元。"""
        mx = self._remap(x, self._width)
        my = self._remap(y, self._height)
        if mx is None or my is None:
            return self.dtype.type(0)
        return self.get(mx, my)

    def safe_set(self, x: int, y: int, value) -> None:
        """写入任意整数坐标；越界坐标按边界条件映射，``ZERO`` 下忽略写入。"""
        mx = self._remap(x, self._width)
        my = self._remap(y, self._height)
        if mx is None or my is None:
            return
        self.set(mx, my, value)

    def fill_border(self) -> None:
        """按边界条件由主矩形重算全部边框单元（``ZERO`` 下为空操作）。"""
        if self._border == 0:
            return
        if self._boundary is BoundaryCondition.WRAP:
            self._wrap()
        elif self._boundary is BoundaryCondition.MIRROR:
            self._mirror()

    def _wrap(self) -> None:
        b, w, h = self._border, self._width, self._height
        f = self.frame
        rows = slice(b, b + h)
        # 左边框取主矩形最右侧 b 列，右边框取最左侧 b 列
        f[rows, 0:b] = f[rows, w:w + b]
        f[rows, b + w:2 * b + w] = f[rows, b:2 * b]
        # 上下边框按整行复制，角落随之填好
        f[0:b, :] = f[h:h + b, :]
        f[b + h:2 * b + h, :] = f[b:2 * b, :]

    def _mirror(self) -> None:
        b, w, h = self._border, self._width, self._height
        f = self.frame
        rows = slice(b, b + h)
        # 距边缘外 i+1 的单元等于距边缘内 i 的单元
        f[rows, 0:b] = f[rows, b:2 * b][:, ::-1]
        f[rows, b + w:2 * b + w] = f[rows, w:b + w][:, ::-1]
        f[0:b, :] = f[b:2 * b, :][::-1, :]
        f[b + h:2 * b + h, :] = f[h:b + h, :][::-1, :]

    def zero(self) -> None:
        """将整个 frame（含边框）置零。"""
        self._data.fill(0)

    def sum(self):
        """主矩形内所有单元之和（不含边框）。"""
        return self.interior.sum()

    def add(self, t) -> None:
        """主矩形每个单元加上 ``t``，随后刷新边框。"""
        self.interior[...] += t
        self.fill_border()

    def assign(self, other: "BorderedGrid") -> None:
        """复制另一网格的整个 frame（含边框）。

        两者的尺寸、边框宽度、边界条件与 dtype 必须完全一致；否则复制过来的边框
        与本网格的边界条件不符（例如 ZERO 网格的边框被写成非零）。
        """
        if (other.width, other.height, other.border) != (self._width, self._height, self._border):
            raise ValueError(
                f"网格形状不一致: ({other.width}, {other.height}, {other.border}) != "
                f"({self._width}, {self._height}, {self._border})"
            )
        if other.boundary is not self._boundary:
            raise ValueError(f"边界条件不一致: {other.boundary.name} != {self._boundary.name}")
        if other.dtype != self.dtype:
            raise ValueError(f"dtype 不一致: {other.dtype} != {self.dtype}")
        np.copyto(self._data, other.data)
