"""三次样条剖面模块

道路沿s方向的分段三次多项式剖面，用于车道偏移、超高、高程和车道宽度。
每段多项式以其起始位置s0为键，在局部坐标 ds = s - s0 上求值。
"""

import bisect
import logging
from typing import Dict, List

logger = logging.getLogger(__name__)


class Poly3:
    """三次多项式 a + b*ds + c*ds^2 + d*ds^3"""

    def __init__(self, a: float = 0.0, b: float = 0.0, c: float = 0.0, d: float = 0.0):
        self.a = a
        self.b = b
        self.c = c
        self.d = d

    def get(self, ds: float) -> float:
        return self.a + self.b * ds + self.c * ds * ds + self.d * ds * ds * ds

    def get_grad(self, ds: float) -> float:
        return self.b + 2 * self.c * ds + 3 * self.d * ds * ds

    def is_zero(self) -> bool:
        return self.a == 0.0 and self.b == 0.0 and self.c == 0.0 and self.d == 0.0

    def __repr__(self):
        return f"Poly3(a={self.a}, b={self.b}, c={self.c}, d={self.d})"


class CubicSpline:
    """分段三次多项式剖面

    s0_to_poly 按s0升序保存各段多项式。查询位置在第一段之前时使用第一段外推，
    超出最后一段时使用最后一段外推。
    """

    def __init__(self):
        self.s0_to_poly: Dict[float, Poly3] = {}
        self._s0_values: List[float] = []

    def add_poly(self, s0: float, a: float, b: float = 0.0, c: float = 0.0, d: float = 0.0) -> Poly3:
        """添加一段多项式

        Args:
            s0: 该段起始位置
            a, b, c, d: 多项式系数（局部坐标 ds = s - s0）

        Returns:
            Poly3: 新添加的多项式
        """
        if s0 in self.s0_to_poly:
            logger.warning(f"样条在 s0={s0} 处已有多项式，将被覆盖")
        else:
            bisect.insort(self._s0_values, s0)
        poly = Poly3(a, b, c, d)
        self.s0_to_poly[s0] = poly
        self.s0_to_poly = {k: self.s0_to_poly[k] for k in self._s0_values}
        return poly

    def get_poly_s0(self, s: float) -> float:
        """获取位置s所属多项式段的起始位置"""
        if not self._s0_values:
            raise ValueError("样条为空，没有多项式段")
        idx = bisect.bisect_right(self._s0_values, s) - 1
        idx = max(0, min(idx, len(self._s0_values) - 1))
        return self._s0_values[idx]

    def get(self, s: float, default_val: float = 0.0) -> float:
        """在位置s处求值，空样条返回default_val"""
        if not self._s0_values:
            return default_val
        s0 = self.get_poly_s0(s)
        return self.s0_to_poly[s0].get(s - s0)

    def get_grad(self, s: float, default_val: float = 0.0) -> float:
        """在位置s处求导数，空样条返回default_val"""
        if not self._s0_values:
            return default_val
        s0 = self.get_poly_s0(s)
        return self.s0_to_poly[s0].get_grad(s - s0)

    def __len__(self) -> int:
        return len(self._s0_values)
