"""车道与车道段模块

车道段（LaneSection）描述在一段连续弧长范围内固定的车道布局。
车道宽度以车道段局部弧长 ds = s - s0 求值，车道边界从中心车道(id=0)向外累加：
左侧车道id为正，横向偏移为正；右侧车道id为负，横向偏移为负。
"""

import logging
from typing import Dict, Optional, Tuple

from .cubic_spline import CubicSpline

logger = logging.getLogger(__name__)


class Lane:
    """车道

    对所属道路和车道段只保存id与s0，不持有对象引用。
    """

    def __init__(self, id: int, type: str = 'driving', road_id: int = None, lanesection_s0: float = None):
        self.id = id
        self.type = type
        self.road_id = road_id
        self.lanesection_s0 = lanesection_s0
        self.width = CubicSpline()

    def __repr__(self):
        return f"Lane(id={self.id}, type='{self.type}', road_id={self.road_id}, lanesection_s0={self.lanesection_s0})"


class LaneSection:
    """车道段"""

    def __init__(self, s0: float, road_id: int = None):
        self.s0 = s0
        self.road_id = road_id
        self.id_to_lane: Dict[int, Lane] = {}

    def add_lane(self, lane: Lane) -> Lane:
        """添加车道，并记录其所属道路和车道段"""
        if lane.id in self.id_to_lane:
            raise ValueError(f"车道段 s0={self.s0} 中已存在车道 {lane.id}")
        lane.road_id = self.road_id
        lane.lanesection_s0 = self.s0
        self.id_to_lane[lane.id] = lane
        self.id_to_lane = dict(sorted(self.id_to_lane.items()))
        return lane

    def get_lane_border(self, lane_id: int, s: float) -> Tuple[float, float]:
        """
        计算车道在弧长s处的内外边界横向偏移

        Args:
            lane_id: 车道id
            s: 道路弧长

        Returns:
            Tuple[float, float]: (内边界t, 外边界t)
        """
        if lane_id not in self.id_to_lane:
            raise ValueError(f"车道段 s0={self.s0} 中不存在车道 {lane_id}")
        if lane_id == 0:
            return 0.0, 0.0

        ds = s - self.s0
        sign = 1 if lane_id > 0 else -1
        inner = 0.0
        for cur_id in range(sign, lane_id + sign, sign):
            lane = self.id_to_lane.get(cur_id)
            if lane is None:
                raise ValueError(f"车道段 s0={self.s0} 缺少车道 {cur_id}，无法累加宽度")
            outer = inner + sign * lane.width.get(ds)
            if cur_id == lane_id:
                return inner, outer
            inner = outer
        return inner, inner

    def get_lane(self, s: float, t: float) -> Optional[Lane]:
        """
        查找横向偏移t处的车道

        t>=0优先在左侧车道中查找，t<0在右侧车道中查找，边界值包含在内。
        t==0且左侧没有车道时，在右侧车道中查找。

        车道id不连续（如有车道1和3但没有2）属于非法输入，
        由get_lane_border抛出ValueError，不返回None。

        Args:
            s: 道路弧长
            t: 相对车道偏移基线的横向偏移

        Returns:
            Optional[Lane]: 车道，t超出所有车道范围时返回None
        """
        left_ids = sorted(lane_id for lane_id in self.id_to_lane if lane_id > 0)
        right_ids = sorted((lane_id for lane_id in self.id_to_lane if lane_id < 0), reverse=True)

        if t >= 0:
            candidate_ids = left_ids + right_ids if t == 0 else left_ids
        else:
            candidate_ids = right_ids

        for lane_id in candidate_ids:
            inner, outer = self.get_lane_border(lane_id, s)
            if min(inner, outer) <= t <= max(inner, outer):
                return self.id_to_lane[lane_id]

        logger.debug(f"道路 {self.road_id} 车道段 s0={self.s0}: s={s}, t={t} 处没有车道")
        return None

    def __repr__(self):
        return f"LaneSection(s0={self.s0}, road_id={self.road_id}, lanes={list(self.id_to_lane)})"
