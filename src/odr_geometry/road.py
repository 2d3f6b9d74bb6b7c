#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
道路模块
道路坐标系：将道路参数坐标(s, t, z)转换为世界坐标，并提供车道段索引。

作者: OdrGeometry项目组
版本: 1.0.0
"""

import bisect
import logging
from operator import attrgetter
from typing import Dict, List, Optional

import numpy as np

from .cubic_spline import CubicSpline
from .lanes import Lane, LaneSection
from .ref_line import RefLine
from .utils import SortedKeySet

logger = logging.getLogger(__name__)

# 不属于任何交叉口的道路的junction取值
NO_JUNCTION = -1


def _normalize(vec: np.ndarray) -> np.ndarray:
    mag = np.linalg.norm(vec)
    if mag > 0.0:
        return vec / mag
    return vec


class Road:
    """
    道路
    持有参考线、车道偏移剖面、超高剖面和按起始弧长排序的车道段索引。
    length、id、junction在构造时确定，其余数据由解析阶段逐步填充，之后只读。
    """

    def __init__(self, length: float, id: int, junction: int = NO_JUNCTION):
        """
        Args:
            length: 道路弧长
            id: 道路id
            junction: 所属交叉口id，NO_JUNCTION表示不在交叉口内
        """
        if length <= 0:
            raise ValueError(f"道路 {id} 长度必须为正: {length}")

        self.id = id
        self.junction = junction
        self.length = length

        self.lane_offset = CubicSpline()
        self.superelevation = CubicSpline()
        self.ref_line = RefLine(id, length)

        self.s0_to_lanesection: Dict[float, LaneSection] = {}
        self._lanesection_s0_values: List[float] = []

    def add_lanesection(self, lanesection: LaneSection) -> LaneSection:
        """
        添加车道段

        Args:
            lanesection: 车道段，以其s0为键

        Returns:
            LaneSection: 添加的车道段
        """
        s0 = lanesection.s0
        if s0 < 0:
            raise ValueError(f"道路 {self.id} 车道段起始弧长不能为负: {s0}")
        if s0 in self.s0_to_lanesection:
            raise ValueError(f"道路 {self.id} 在 s0={s0} 处已有车道段")
        if s0 > self.length:
            logger.warning(f"道路 {self.id} 车道段起点 s0={s0} 超出道路长度 {self.length}")

        lanesection.road_id = self.id
        for lane in lanesection.id_to_lane.values():
            lane.road_id = self.id

        bisect.insort(self._lanesection_s0_values, s0)
        self.s0_to_lanesection[s0] = lanesection
        self.s0_to_lanesection = {k: self.s0_to_lanesection[k] for k in self._lanesection_s0_values}
        return lanesection

    def get_lanesection_s0(self, s: float) -> float:
        """
        获取弧长s所属车道段的起始弧长

        s小于第一个键时取第一个车道段，大于最后一个键时取最后一个车道段。
        """
        if not self._lanesection_s0_values:
            raise ValueError(f"道路 {self.id} 没有车道段")
        idx = bisect.bisect_right(self._lanesection_s0_values, s) - 1
        idx = max(0, min(idx, len(self._lanesection_s0_values) - 1))
        return self._lanesection_s0_values[idx]

    def get_lanesection(self, s: float) -> LaneSection:
        """获取弧长s处的车道段"""
        return self.s0_to_lanesection[self.get_lanesection_s0(s)]

    def get_lanesection_end(self, lanesection: LaneSection) -> float:
        """车道段的结束弧长：下一车道段的起点，最后一段为道路长度"""
        idx = bisect.bisect_right(self._lanesection_s0_values, lanesection.s0)
        if idx < len(self._lanesection_s0_values):
            return self._lanesection_s0_values[idx]
        return self.length

    def get_lanesections(self) -> SortedKeySet:
        """按起始弧长排序的全部车道段"""
        return SortedKeySet(attrgetter('s0'), self.s0_to_lanesection.values())

    def get_lane(self, s: float, t: float) -> Optional[Lane]:
        """
        获取(s, t)处的车道

        Args:
            s: 道路弧长
            t: 相对车道偏移基线的横向偏移

        Returns:
            Optional[Lane]: 车道，不存在时返回None
        """
        return self.get_lanesection(s).get_lane(s, t)

    def get_transformation_matrix(self, s: float) -> np.ndarray:
        """
        弧长s处的局部坐标系旋转矩阵

        三列依次为切向e_s、横向e_t、法向e_h。e_s来自参考线切向量（含高程坡度），
        e_t与e_h绕e_s按超高角滚转。

        Args:
            s: 道路弧长

        Returns:
            np.ndarray: 3x3旋转矩阵
        """
        e_s = _normalize(self.ref_line.get_grad(s))
        theta = self.superelevation.get(s)
        cos_t = np.cos(theta)
        sin_t = np.sin(theta)

        e_t = _normalize(np.array([
            cos_t * -e_s[1] + sin_t * -e_s[2] * e_s[0],
            cos_t * e_s[0] + sin_t * -e_s[2] * e_s[1],
            sin_t * (e_s[0] * e_s[0] + e_s[1] * e_s[1]),
        ]))
        e_h = _normalize(np.cross(e_s, e_t))

        return np.column_stack([e_s, e_t, e_h])

    def get_xyz(self, s: float, t: float, z: float) -> np.ndarray:
        """
        道路坐标(s, t, z)转换为世界坐标

        结果为参考线位置加上旋转矩阵作用于 (0, t + lane_offset(s), z)。
        s超出[0, length]时外推。

        Args:
            s: 道路弧长
            t: 相对车道偏移基线的横向偏移
            z: 相对路面的高度

        Returns:
            np.ndarray: 世界坐标 (x, y, z)
        """
        trans_mat = self.get_transformation_matrix(s)
        t_offset = t + self.lane_offset.get(s)
        return self.ref_line.get_xyz(s) + trans_mat @ np.array([0.0, t_offset, z])

    def __repr__(self):
        return f"Road(id={self.id}, junction={self.junction}, length={self.length})"


class RoadSet(SortedKeySet):
    """
    道路集合
    以道路id为键，按id升序遍历，id重复的道路不会被加入。
    """

    def __init__(self, roads=None):
        super().__init__(attrgetter('id'), roads)

    def add(self, road: Road) -> bool:
        added = super().add(road)
        if not added:
            logger.warning(f"道路 {road.id} 已存在于集合中，忽略重复添加")
        return added
