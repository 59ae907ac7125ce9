"""颜色映射
============

把 (复振幅, 势) 映射为 ``0xRRGGBB`` 打包颜色，供 :meth:`snwave.wave.Wave.draw` 使用。

所有函数既接受标量也接受 NumPy 数组：标量输入返回 ``int``，数组输入返回 ``uint32`` 数组，
因此可配合 ``draw(..., vectorized=True)`` 一次性着色整个网格。
"""

from __future__ import annotations

import numpy as np

__all__ = [
    "rgb_to_color",
    "hsv_to_color",
    "phase_color",
    "plane_color",
    "COLOR_MAPS",
]


def _pack(result: np.ndarray, *inputs):
    if all(np.ndim(a) == 0 for a in inputs):
        return int(result)
    return result


def _channel(v) -> np.ndarray:
    # 截断到 [0, 255] 后取整（向零截断）
    return np.clip(np.asarray(v, dtype=float) * 255.0, 0.0, 255.0).astype(np.uint32)


def rgb_to_color(r, g, b):
    """``[0, 1]`` 内的 RGB 分量打包为 ``(R << 16) + (G << 8) + B``，越界分量被截断。"""
    packed = (_channel(r) << np.uint32(16)) + (_channel(g) << np.uint32(8)) + _channel(b)
    return _pack(packed, r, g, b)


def hsv_to_color(h, s, v):
    r"""HSV 转打包颜色，色相 ``h`` 以弧度给出，取值 :math:`[-\pi, \pi]`。

    色相按 :math:`h \cdot 3/\pi + 3` 映射到 6 个扇区；``s == 0`` 时为灰度 :math:`(v, v, v)`。
    """
    h_arr = np.asarray(h, dtype=float) * 3.0 / np.pi + 3.0
    s_arr = np.asarray(s, dtype=float)
    v_arr = np.asarray(v, dtype=float)
    i = np.floor(h_arr)
    f = h_arr - i
    p = v_arr * (1.0 - s_arr)
    q = v_arr * (1.0 - s_arr * f)
    t = v_arr * (1.0 - s_arr * (1.0 - f))
    sectors = [i == 0, i == 1, i == 2, i == 3, i == 4]
    r = np.select(sectors, [v_arr, q, p, p, t], default=v_arr)
    g = np.select(sectors, [t, v_arr, v_arr, q, p], default=p)
    b = np.select(sectors, [p, p, t, v_arr, v_arr], default=q)
    # s == 0 时 p == q == t == v，各扇区都退化为灰度
    return _pack(rgb_to_color(r, g, b), h, s, v)


def phase_color(c, p):
    """相位定色相，振幅与势定亮度；势越高饱和度越低。"""
    c = np.asarray(c, dtype=complex)
    p_arr = np.asarray(p, dtype=float)
    packed = hsv_to_color(
        np.angle(c),
        np.maximum(0.0, 1.0 - p_arr),
        np.minimum(np.abs(c) * 0.5 + p_arr, 1.0),
    )
    return _pack(np.asarray(packed), c, p)


def plane_color(c, p):
    """实部→红，虚部→绿，势→蓝。"""
    c = np.asarray(c, dtype=complex) * 0.5
    p_arr = np.asarray(p, dtype=float)
    packed = rgb_to_color(c.real + 0.5, c.imag + 0.5, np.minimum(p_arr, 1.0))
    return _pack(np.asarray(packed), c, p)


COLOR_MAPS = {
    "phase": phase_color,
    "plane": plane_color,
}
