#!/usr/bin/env python
"""Schrödinger–Newton 波函数演化的无界面宿主循环。

每帧：归一化 → 连续演化若干步 → 着色到像素缓冲区。指针事件以脚本化的扰动序列代替：
前若干帧在网格中央注入势平台，随后在一条圆周上注入波包。

用法示例::

    python examples/run_wave.py 128 64 --steps 50 --bench --save out.png
"""

import argparse
import sys
import time
from pathlib import Path

import numpy as np

# 添加 src 到路径
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from snwave.color import COLOR_MAPS
from snwave.wave import Wave


class Bencher:
    """按类别累计耗时的秒表；未激活时所有调用均为空操作。"""

    def __init__(self, active: bool = True):
        self.active = active
        self.count: dict[str, int] = {}
        self.seconds: dict[str, float] = {}
        self.prev = time.perf_counter()

    def bench(self, label: str) -> None:
        if not self.active:
            return
        now = time.perf_counter()
        self.count[label] = self.count.get(label, 0) + 1
        self.seconds[label] = self.seconds.get(label, 0.0) + now - self.prev
        self.prev = now

    def report(self) -> None:
        if not self.active:
            return
        for label, n in self.count.items():
            print(f"{label}: {1e3 * self.seconds[label] / n:.3f} ms")


def scripted_bump(wave: Wave, frame: int, scale: float, big: bool = False, weight: float = 0.3):
    """模拟一次指针事件：像素坐标除以显示倍率得到网格坐标。"""
    size = 20 if big else 6
    theta = 2.0 * np.pi * frame / 60.0
    px = (0.5 + 0.25 * np.cos(theta)) * wave.width * scale
    py = (0.5 + 0.25 * np.sin(theta)) * wave.height * scale
    x, y = int(px / scale), int(py / scale)
    if frame < 5:
        wave.add_potential_bump(wave.width // 2, wave.height // 2, weight, size)
    c = 2.0 * np.exp(1j * theta) * weight
    wave.add_bump(x, y, c, size)


def save_png(pixels: np.ndarray, width: int, height: int, path: str, scale: float) -> None:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    img = pixels.reshape(height, width)
    rgb = np.stack([(img >> 16) & 0xFF, (img >> 8) & 0xFF, img & 0xFF], axis=-1).astype(np.uint8)
    fig = plt.figure(figsize=(width * scale / 100.0, height * scale / 100.0), dpi=100)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.imshow(rgb, interpolation="nearest")
    ax.set_axis_off()
    fig.savefig(path)
    plt.close(fig)


def main():
    ap = argparse.ArgumentParser(description="Schrödinger-Poisson equation")
    ap.add_argument("width", type=int, nargs="?", default=256)
    ap.add_argument("height", type=int, nargs="?", default=128)
    ap.add_argument("scale", type=float, nargs="?", default=2.0)
    ap.add_argument("--steps", type=int, default=30, help="帧数")
    ap.add_argument("--skip-frames", type=int, default=5, help="每帧演化步数")
    ap.add_argument("--colors", choices=sorted(COLOR_MAPS), default="phase")
    ap.add_argument("--bench", action="store_true", help="打印各阶段平均耗时")
    ap.add_argument("--save", type=str, default=None, help="最后一帧导出为 PNG")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    wave = Wave(args.width, args.height)
    pixels = np.zeros(args.width * args.height, dtype=np.uint32)
    color_fn = COLOR_MAPS[args.colors]
    bencher = Bencher(args.bench)

    for frame in range(args.steps):
        scripted_bump(wave, frame, args.scale, big=(frame % 10 == 0))
        wave.normalize()
        failures = wave.run(args.skip_frames)
        if failures:
            print(f"[run_wave] frame={frame} Poisson 未收敛 {failures} 次")
        bencher.bench("Calculation")
        wave.draw(pixels, color_fn, vectorized=True)
        bencher.bench("Color coding")
        if args.verbose:
            print(f"[run_wave] frame={frame} P={wave.total_probability():.6f}")

    bencher.report()
    if args.save:
        save_png(pixels, args.width, args.height, args.save, args.scale)
        print(f"已保存: {args.save}")


if __name__ == "__main__":
    main()
