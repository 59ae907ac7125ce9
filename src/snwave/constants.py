"""物理常量集中维护
====================

国际单位制（SI）下的常量；势场显示单位 :data:`POTENTIAL_UNIT` 仅用于绘制与扰动注入的换算。
"""

from __future__ import annotations

# Planck 常数 (J·s)
PLANCK_CONST = 6.62606957e-34

# 引力常数 (N·m²/kg²)
GRAVITATIONAL_CONST = 6.673e-11

# 电子质量 (kg)
ELECTRON_MASS = 9.10938291e-31

# 势场的显示倍率 (1/J)
POTENTIAL_UNIT = 1e35
