#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
道路网格生成器
在道路坐标系中按弧长采样车道内外边界，缝合为三角网格。

作者: OdrGeometry项目组
版本: 1.0.0
"""

import logging
from typing import Dict, Iterable, List

import numpy as np

from .lanes import Lane
from .road import Road
from .utils import Box2D, Mesh3D, generate_mesh_from_borders

logger = logging.getLogger(__name__)


class RoadMeshBuilder:
    """
    道路网格生成器
    将道路车道几何转换为三维三角网格
    """

    def __init__(self, config: Dict = None):
        """
        初始化生成器

        Args:
            config: 生成配置参数
        """
        # 默认配置
        self.config = {
            'resolution': 0.5,              # 采样分辨率（米），更小的值产生更精细的网格
            'simplify_tolerance': 0.1,      # 参考线折线简化容差（米）
            'include_center_lane': False,   # 是否为中心车道生成网格
            'skip_lane_types': [],          # 不生成网格的车道类型
        }

        # 更新配置
        if config:
            self.config.update(config)

        if self.config['resolution'] <= 0:
            raise ValueError(f"采样分辨率必须为正: {self.config['resolution']}")

        self.stats = {
            'roads': 0,
            'lanes': 0,
            'vertices': 0,
            'triangles': 0,
        }

    def get_s_values(self, s_start: float, s_end: float) -> List[float]:
        """
        在[s_start, s_end]内按分辨率采样弧长，包含两端

        Args:
            s_start: 起始弧长
            s_end: 结束弧长

        Returns:
            List[float]: 弧长序列
        """
        resolution = self.config['resolution']
        s_values = list(np.arange(s_start, s_end, resolution))
        if not s_values or s_end - s_values[-1] > 1e-9:
            s_values.append(s_end)
        return [float(s) for s in s_values]

    def get_lane_mesh(self, road: Road, lane: Lane) -> Mesh3D:
        """
        生成单条车道的网格

        Args:
            road: 车道所属道路
            lane: 车道

        Returns:
            Mesh3D: 车道网格
        """
        lanesection = road.s0_to_lanesection[lane.lanesection_s0]
        s_end = road.get_lanesection_end(lanesection)

        inner_border = []
        outer_border = []
        for s in self.get_s_values(lanesection.s0, s_end):
            inner_t, outer_t = lanesection.get_lane_border(lane.id, s)
            inner_border.append(road.get_xyz(s, inner_t, 0.0))
            outer_border.append(road.get_xyz(s, outer_t, 0.0))

        try:
            mesh = generate_mesh_from_borders(inner_border, outer_border)
        except ValueError as e:
            logger.error(f"道路 {road.id} 车道 {lane.id} 网格生成失败: {e}")
            raise

        self.stats['lanes'] += 1
        return mesh

    def get_road_mesh(self, road: Road) -> Mesh3D:
        """
        生成道路所有车道的网格

        Args:
            road: 道路

        Returns:
            Mesh3D: 合并后的道路网格
        """
        road_mesh = Mesh3D()
        skip_types = set(self.config['skip_lane_types'])

        for lanesection in road.get_lanesections():
            for lane in lanesection.id_to_lane.values():
                if lane.id == 0 and not self.config['include_center_lane']:
                    continue
                if lane.type in skip_types:
                    continue
                road_mesh.add_mesh(self.get_lane_mesh(road, lane))

        self.stats['roads'] += 1
        self.stats['vertices'] += len(road_mesh.vertices)
        self.stats['triangles'] += road_mesh.num_triangles
        logger.info(f"道路 {road.id} 网格生成完成: 顶点 {len(road_mesh.vertices)} 个, 三角形 {road_mesh.num_triangles} 个")
        return road_mesh

    def get_network_mesh(self, roads: Iterable[Road]) -> Mesh3D:
        """
        生成道路网络网格，按道路id升序合并

        Args:
            roads: 道路集合（RoadSet）

        Returns:
            Mesh3D: 整个路网的网格
        """
        network_mesh = Mesh3D()
        for road in sorted(roads, key=lambda r: r.id):
            network_mesh.add_mesh(self.get_road_mesh(road))
        return network_mesh

    def get_road_bbox(self, road: Road) -> Box2D:
        """道路参考线的平面包围盒"""
        return road.ref_line.get_bbox(self.config['resolution'])

    def get_reference_line(self, road: Road) -> List[np.ndarray]:
        """
        道路参考线的简化折线

        Args:
            road: 道路

        Returns:
            List[np.ndarray]: 三维折线点
        """
        return road.ref_line.get_line(0.0, road.length, self.config['simplify_tolerance'],
                                      resolution=self.config['resolution'])

    def get_conversion_stats(self) -> Dict:
        """
        获取生成统计信息

        Returns:
            统计信息字典
        """
        stats = dict(self.stats)
        stats['resolution'] = self.config['resolution']
        return stats
