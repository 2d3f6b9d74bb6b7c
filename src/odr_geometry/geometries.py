#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
参考线几何体
实现OpenDRIVE平面视图中的直线、圆弧、螺旋线和参数三次多项式。
所有几何体在局部弧长 s∈[0, length] 上求值，超出范围时外推。

作者: OdrGeometry项目组
版本: 1.0.0
"""

import math
import logging
from abc import ABC, abstractmethod
from typing import Tuple

import numpy as np
from scipy.special import fresnel

from .utils import Box2D, get_bbox_for_s_values

logger = logging.getLogger(__name__)


class RoadGeometry(ABC):
    """
    参考线几何体基类
    """

    def __init__(self, s0: float, x0: float, y0: float, hdg0: float, length: float):
        """
        Args:
            s0: 在参考线上的起始弧长
            x0, y0: 起点坐标
            hdg0: 起始航向角（弧度，逆时针，0指向x轴正方向）
            length: 几何体长度
        """
        self.s0 = s0
        self.x0 = x0
        self.y0 = y0
        self.hdg0 = hdg0
        self.length = length

    @property
    def type(self) -> str:
        return self.__class__.__name__.lower()

    @abstractmethod
    def get_xy(self, s: float) -> np.ndarray:
        """局部弧长s处的平面坐标"""

    @abstractmethod
    def get_grad(self, s: float) -> np.ndarray:
        """局部弧长s处的单位切向量"""

    def get_bbox(self, num_samples: int = 20) -> Box2D:
        """
        通过均匀采样计算几何体包围盒

        Args:
            num_samples: 采样点数

        Returns:
            Box2D: 包围盒
        """
        s_values = np.linspace(0.0, self.length, max(2, num_samples))
        return get_bbox_for_s_values(s_values, self.get_xy)

    def _to_global(self, u: float, v: float) -> np.ndarray:
        cos_hdg = math.cos(self.hdg0)
        sin_hdg = math.sin(self.hdg0)
        return np.array([self.x0 + u * cos_hdg - v * sin_hdg,
                         self.y0 + u * sin_hdg + v * cos_hdg])

    def __repr__(self):
        return f"{self.__class__.__name__}(s0={self.s0}, x0={self.x0}, y0={self.y0}, hdg0={self.hdg0}, length={self.length})"


class Line(RoadGeometry):
    """直线"""

    def get_xy(self, s: float) -> np.ndarray:
        return np.array([self.x0 + s * math.cos(self.hdg0), self.y0 + s * math.sin(self.hdg0)])

    def get_grad(self, s: float) -> np.ndarray:
        return np.array([math.cos(self.hdg0), math.sin(self.hdg0)])


class Arc(RoadGeometry):
    """圆弧，曲率为正表示左转"""

    def __init__(self, s0: float, x0: float, y0: float, hdg0: float, length: float, curvature: float):
        super().__init__(s0, x0, y0, hdg0, length)
        self.curvature = curvature

    def get_xy(self, s: float) -> np.ndarray:
        if abs(self.curvature) < 1e-10:
            return np.array([self.x0 + s * math.cos(self.hdg0), self.y0 + s * math.sin(self.hdg0)])

        radius = 1.0 / self.curvature
        angle = s * self.curvature
        x = self.x0 + radius * (math.sin(self.hdg0 + angle) - math.sin(self.hdg0))
        y = self.y0 - radius * (math.cos(self.hdg0 + angle) - math.cos(self.hdg0))
        return np.array([x, y])

    def get_grad(self, s: float) -> np.ndarray:
        heading = self.hdg0 + s * self.curvature
        return np.array([math.cos(heading), math.sin(heading)])


class Spiral(RoadGeometry):
    """
    螺旋线（Clothoid），曲率沿弧长从curv_start线性变化到curv_end

    使用Fresnel积分计算标准螺旋线，再平移旋转到起点位置。
    """

    def __init__(self, s0: float, x0: float, y0: float, hdg0: float, length: float,
                 curv_start: float, curv_end: float):
        super().__init__(s0, x0, y0, hdg0, length)
        self.curv_start = curv_start
        self.curv_end = curv_end
        self.c_dot = (curv_end - curv_start) / length if length > 0 else 0.0

        if abs(self.c_dot) < 1e-12:
            # 曲率变化率为0时退化为圆弧
            self._arc = Arc(s0, x0, y0, hdg0, length, curv_start)
            return

        self._arc = None
        # 在标准螺旋线（原点处曲率为0）上对应curv_start的弧长位置
        self._s_start = curv_start / self.c_dot
        self._p_start = self._standard_xy(self._s_start)
        self._theta_start = self._standard_heading(self._s_start)

    def _standard_xy(self, s: float) -> np.ndarray:
        scale = math.sqrt(math.pi / abs(self.c_dot))
        fresnel_s, fresnel_c = fresnel(s / scale)
        return np.array([scale * fresnel_c, math.copysign(1.0, self.c_dot) * scale * fresnel_s])

    def _standard_heading(self, s: float) -> float:
        return 0.5 * self.c_dot * s * s

    def get_xy(self, s: float) -> np.ndarray:
        if self._arc is not None:
            return self._arc.get_xy(s)

        # 平移到螺旋段起点并旋转使其起始航向为0
        delta = self._standard_xy(self._s_start + s) - self._p_start
        cos_t = math.cos(-self._theta_start)
        sin_t = math.sin(-self._theta_start)
        u = delta[0] * cos_t - delta[1] * sin_t
        v = delta[0] * sin_t + delta[1] * cos_t
        return self._to_global(u, v)

    def get_grad(self, s: float) -> np.ndarray:
        if self._arc is not None:
            return self._arc.get_grad(s)

        heading = self.hdg0 + self._standard_heading(self._s_start + s) - self._theta_start
        return np.array([math.cos(heading), math.sin(heading)])


class ParamPoly3(RoadGeometry):
    """
    参数三次多项式
    u(p) = aU + bU*p + cU*p^2 + dU*p^3, v(p) = aV + bV*p + cV*p^2 + dV*p^3
    p_range_normalized为True时 p = s / length，否则 p = s
    """

    def __init__(self, s0: float, x0: float, y0: float, hdg0: float, length: float,
                 aU: float, bU: float, cU: float, dU: float,
                 aV: float, bV: float, cV: float, dV: float,
                 p_range_normalized: bool = True):
        super().__init__(s0, x0, y0, hdg0, length)
        self.coeffs_u = (aU, bU, cU, dU)
        self.coeffs_v = (aV, bV, cV, dV)
        self.p_range_normalized = p_range_normalized

    def _get_p(self, s: float) -> float:
        if self.p_range_normalized:
            return s / self.length if self.length > 0 else 0.0
        return s

    @staticmethod
    def _eval(coeffs: Tuple[float, float, float, float], p: float) -> float:
        a, b, c, d = coeffs
        return a + b * p + c * p * p + d * p * p * p

    @staticmethod
    def _eval_grad(coeffs: Tuple[float, float, float, float], p: float) -> float:
        _, b, c, d = coeffs
        return b + 2 * c * p + 3 * d * p * p

    def get_xy(self, s: float) -> np.ndarray:
        p = self._get_p(s)
        return self._to_global(self._eval(self.coeffs_u, p), self._eval(self.coeffs_v, p))

    def get_grad(self, s: float) -> np.ndarray:
        p = self._get_p(s)
        du_dp = self._eval_grad(self.coeffs_u, p)
        dv_dp = self._eval_grad(self.coeffs_v, p)
        heading = self.hdg0 + math.atan2(dv_dp, du_dp)
        return np.array([math.cos(heading), math.sin(heading)])
