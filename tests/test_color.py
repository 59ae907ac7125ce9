import numpy as np
import pytest

from snwave.color import COLOR_MAPS, hsv_to_color, phase_color, plane_color, rgb_to_color


@pytest.mark.color
@pytest.mark.quick
def test_rgb_packing_and_clamping():
    assert rgb_to_color(1.0, 0.0, 0.0) == 0xFF0000
    assert rgb_to_color(0.0, 1.0, 0.0) == 0x00FF00
    assert rgb_to_color(0.0, 0.0, 1.0) == 0x0000FF
    assert rgb_to_color(2.0, -1.0, 0.5) == 0xFF007F
    assert isinstance(rgb_to_color(0.1, 0.2, 0.3), int)


@pytest.mark.color
@pytest.mark.quick
def test_hsv_sectors():
    # h = -pi 落在扇区 0，对应红色
    assert hsv_to_color(-np.pi, 1.0, 1.0) == 0xFF0000
    # h = 0 落在扇区 3：(p, q, v) = (0, 1, 1)
    assert hsv_to_color(0.0, 1.0, 1.0) == 0x00FFFF
    # h = pi/2 落在扇区 4：(t, p, v)，t = 0.5
    assert hsv_to_color(np.pi / 2, 1.0, 1.0) == 0x7F00FF
    # 零饱和度为灰度
    assert hsv_to_color(1.0, 0.0, 0.5) == rgb_to_color(0.5, 0.5, 0.5)


@pytest.mark.color
@pytest.mark.quick
def test_color_maps_scalar_and_array_agree():
    rng = np.random.default_rng(3)
    c = rng.normal(size=(4, 5)) + 1j * rng.normal(size=(4, 5))
    p = rng.uniform(0.0, 1.5, size=(4, 5))
    for fn in COLOR_MAPS.values():
        arr = fn(c, p)
        assert arr.shape == (4, 5)
        assert arr.dtype == np.uint32
        for idx in np.ndindex(4, 5):
            assert arr[idx] == fn(complex(c[idx]), float(p[idx]))


@pytest.mark.color
@pytest.mark.quick
def test_reference_colors():
    # 零振幅零势：亮度 0
    assert phase_color(0j, 0.0) == 0
    # 强势场：饱和度为 0，亮度饱和为白色
    assert phase_color(1.0 + 0j, 2.0) == 0xFFFFFF
    assert plane_color(0j, 0.0) == rgb_to_color(0.5, 0.5, 0.0)
    assert plane_color(1.0 + 1.0j, 3.0) == 0xFFFFFF
