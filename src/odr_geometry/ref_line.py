"""参考线模块

道路参考线由按起始弧长排序的几何体组成，并带有高程剖面。
提供任意弧长处的三维位置与切向量、最近点匹配和折线近似。
"""

import bisect
import logging
from typing import Dict, List

import numpy as np

from .cubic_spline import CubicSpline
from .geometries import RoadGeometry
from .utils import Box2D, get_bbox_for_s_values, golden_section_search, rdp

logger = logging.getLogger(__name__)


class RefLine:
    """道路参考线

    s0_to_geometry 按起始弧长保存几何体，elevation_profile 给出高程z(s)。
    查询弧长超出范围时使用首/末几何体外推。
    """

    def __init__(self, road_id: int, length: float):
        self.road_id = road_id
        self.length = length
        self.elevation_profile = CubicSpline()
        self.s0_to_geometry: Dict[float, RoadGeometry] = {}
        self._s0_values: List[float] = []

    def add_geometry(self, geometry: RoadGeometry):
        """添加几何体

        Args:
            geometry: 参考线几何体，其s0为在参考线上的起始弧长
        """
        if geometry.s0 in self.s0_to_geometry:
            raise ValueError(f"道路 {self.road_id} 参考线在 s0={geometry.s0} 处已有几何体")

        if self._s0_values:
            prev_idx = bisect.bisect_left(self._s0_values, geometry.s0) - 1
            if prev_idx >= 0:
                prev = self.s0_to_geometry[self._s0_values[prev_idx]]
                gap = geometry.s0 - (prev.s0 + prev.length)
                if abs(gap) > 1e-6:
                    logger.warning(f"道路 {self.road_id} 参考线几何体不连续: s0={geometry.s0}, 间隙 {gap:.6f}m")

        bisect.insort(self._s0_values, geometry.s0)
        self.s0_to_geometry[geometry.s0] = geometry
        self.s0_to_geometry = {s0: self.s0_to_geometry[s0] for s0 in self._s0_values}
        logger.debug(f"道路 {self.road_id} 添加{geometry.type}几何体, s0={geometry.s0}, 长度={geometry.length}")

    def get_geometry_s0(self, s: float) -> float:
        if not self._s0_values:
            raise ValueError(f"道路 {self.road_id} 参考线没有几何体")
        idx = bisect.bisect_right(self._s0_values, s) - 1
        idx = max(0, min(idx, len(self._s0_values) - 1))
        return self._s0_values[idx]

    def get_geometry(self, s: float) -> RoadGeometry:
        """获取弧长s所属的几何体"""
        return self.s0_to_geometry[self.get_geometry_s0(s)]

    def get_xy(self, s: float) -> np.ndarray:
        geom = self.get_geometry(s)
        return geom.get_xy(s - geom.s0)

    def get_xyz(self, s: float) -> np.ndarray:
        """
        弧长s处的三维位置，z取自高程剖面

        Args:
            s: 参考线弧长

        Returns:
            np.ndarray: (x, y, z)
        """
        x, y = self.get_xy(s)
        return np.array([x, y, self.elevation_profile.get(s)])

    def get_grad(self, s: float) -> np.ndarray:
        """
        弧长s处的三维切向量 (dx/ds, dy/ds, dz/ds)，未归一化

        Args:
            s: 参考线弧长

        Returns:
            np.ndarray: 切向量
        """
        geom = self.get_geometry(s)
        dx, dy = geom.get_grad(s - geom.s0)
        return np.array([dx, dy, self.elevation_profile.get_grad(s)])

    def match(self, x: float, y: float) -> float:
        """
        查找参考线上距离点(x, y)最近的弧长

        假设距离函数在[0, length]上单峰，使用黄金分割搜索。

        Args:
            x, y: 查询点坐标

        Returns:
            float: 最近点的弧长
        """
        target = np.array([x, y])

        def f_dist(s):
            return float(np.linalg.norm(self.get_xy(s) - target))

        return golden_section_search(f_dist, 0.0, self.length, 1e-2)

    def get_line(self, s_start: float, s_end: float, eps: float, resolution: float = 0.1) -> List[np.ndarray]:
        """
        参考线在[s_start, s_end]上的折线近似

        先按resolution均匀采样，再用Douglas-Peucker算法以eps为容差简化。

        Args:
            s_start: 起始弧长
            s_end: 结束弧长
            eps: 简化容差
            resolution: 采样间隔

        Returns:
            List[np.ndarray]: 三维折线点
        """
        num_points = max(2, int(np.ceil((s_end - s_start) / resolution)) + 1)
        points = [self.get_xyz(s) for s in np.linspace(s_start, s_end, num_points)]
        simplified = rdp(points, eps)
        logger.debug(f"道路 {self.road_id} 参考线采样点 {len(points)} 个，简化后 {len(simplified)} 个")
        return simplified

    def get_bbox(self, resolution: float = 1.0) -> Box2D:
        """参考线平面包围盒"""
        num_points = max(2, int(np.ceil(self.length / resolution)) + 1)
        return get_bbox_for_s_values(np.linspace(0.0, self.length, num_points), self.get_xy)
