#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
道路坐标系与车道段索引测试

测试Road的坐标转换、旋转矩阵、车道段查找和车道查找，以及RoadSet。
"""

import math
import unittest
import sys
import os

import numpy as np

# 添加src目录到Python路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from odr_geometry.geometries import Arc, Line
from odr_geometry.lanes import Lane, LaneSection
from odr_geometry.road import NO_JUNCTION, Road, RoadSet


def make_lanesection(s0, left_widths=(3.5,), right_widths=(3.5,)):
    """创建车道段，左右车道宽度为常数"""
    lanesection = LaneSection(s0)
    lanesection.add_lane(Lane(0, 'none'))
    for i, width in enumerate(left_widths, start=1):
        lane = Lane(i, 'driving')
        lane.width.add_poly(0.0, width)
        lanesection.add_lane(lane)
    for i, width in enumerate(right_widths, start=1):
        lane = Lane(-i, 'driving')
        lane.width.add_poly(0.0, width)
        lanesection.add_lane(lane)
    return lanesection


def make_straight_road(length=30.0, id=1):
    road = Road(length, id)
    road.ref_line.add_geometry(Line(0.0, 0.0, 0.0, 0.0, length))
    return road


class TestLaneSectionIndex(unittest.TestCase):
    """车道段索引测试类"""

    def setUp(self):
        """测试前准备：车道段起点 {0, 10, 25}，乱序添加"""
        self.road = make_straight_road(30.0)
        for s0 in (25.0, 0.0, 10.0):
            self.road.add_lanesection(make_lanesection(s0))

    def test_keys_sorted(self):
        self.assertEqual(list(self.road.s0_to_lanesection.keys()), [0.0, 10.0, 25.0])

    def test_get_lanesection(self):
        """测试按弧长查找车道段"""
        self.assertEqual(self.road.get_lanesection(7.0).s0, 0.0)
        self.assertEqual(self.road.get_lanesection(10.0).s0, 10.0)
        self.assertEqual(self.road.get_lanesection(29.9).s0, 25.0)

    def test_get_lanesection_clamped(self):
        """超出范围的弧长取最近的车道段"""
        self.assertEqual(self.road.get_lanesection(-5.0).s0, 0.0)
        self.assertEqual(self.road.get_lanesection(30.5).s0, 25.0)

    def test_get_lanesection_end(self):
        self.assertEqual(self.road.get_lanesection_end(self.road.get_lanesection(0.0)), 10.0)
        self.assertEqual(self.road.get_lanesection_end(self.road.get_lanesection(26.0)), 30.0)

    def test_get_lanesections(self):
        """车道段集合按起点排序"""
        lanesections = self.road.get_lanesections()
        self.assertEqual([ls.s0 for ls in lanesections], [0.0, 10.0, 25.0])
        self.assertEqual(len(lanesections), 3)

    def test_empty_index(self):
        """没有车道段时报错"""
        road = make_straight_road()
        with self.assertRaises(ValueError):
            road.get_lanesection(1.0)

    def test_invalid_keys(self):
        """重复或为负的起点报错"""
        with self.assertRaises(ValueError):
            self.road.add_lanesection(make_lanesection(10.0))
        with self.assertRaises(ValueError):
            self.road.add_lanesection(make_lanesection(-1.0))

    def test_back_references_are_ids(self):
        """车道段和车道记录所属道路id"""
        lanesection = self.road.get_lanesection(12.0)
        self.assertEqual(lanesection.road_id, self.road.id)
        self.assertEqual(lanesection.id_to_lane[1].road_id, self.road.id)
        self.assertEqual(lanesection.id_to_lane[1].lanesection_s0, 10.0)


class TestGetLane(unittest.TestCase):
    """车道查找测试类"""

    def setUp(self):
        self.road = make_straight_road(30.0)
        self.road.add_lanesection(make_lanesection(0.0, left_widths=(3.5, 3.0), right_widths=(3.5,)))

    def test_lane_lookup(self):
        """测试按横向偏移查找车道"""
        self.assertEqual(self.road.get_lane(5.0, 1.0).id, 1)
        self.assertEqual(self.road.get_lane(5.0, 5.0).id, 2)
        self.assertEqual(self.road.get_lane(5.0, -2.0).id, -1)

    def test_lane_miss(self):
        """超出所有车道时返回None"""
        self.assertIsNone(self.road.get_lane(5.0, 10.0))
        self.assertIsNone(self.road.get_lane(5.0, -4.0))

    def test_right_only_section_at_reference_line(self):
        """只有右侧车道时，t=0落在车道-1上"""
        road = make_straight_road(30.0, id=2)
        road.add_lanesection(make_lanesection(0.0, left_widths=(), right_widths=(3.5,)))

        self.assertEqual(road.get_lane(5.0, 0.0).id, -1)
        self.assertEqual(road.get_lane(5.0, -1e-12).id, -1)
        self.assertIsNone(road.get_lane(5.0, 1e-12))

    def test_left_only_section_at_negative_zero(self):
        """只有左侧车道时，t=-0.0落在车道1上"""
        road = make_straight_road(30.0, id=3)
        road.add_lanesection(make_lanesection(0.0, left_widths=(3.5,), right_widths=()))

        self.assertEqual(road.get_lane(5.0, -0.0).id, 1)
        self.assertIsNone(road.get_lane(5.0, -1e-12))

    def test_reference_line_prefers_left(self):
        """两侧都有车道时，t=0取左侧车道"""
        self.assertEqual(self.road.get_lane(5.0, 0.0).id, 1)

    def test_lane_id_gap_raises(self):
        """车道id不连续时报错"""
        lanesection = LaneSection(0.0)
        for lane_id in (1, 3):
            lane = Lane(lane_id)
            lane.width.add_poly(0.0, 3.0)
            lanesection.add_lane(lane)

        with self.assertRaises(ValueError):
            lanesection.get_lane(5.0, 4.0)

    def test_lane_border(self):
        lanesection = self.road.get_lanesection(5.0)
        self.assertEqual(lanesection.get_lane_border(2, 5.0), (3.5, 6.5))
        self.assertEqual(lanesection.get_lane_border(-1, 5.0), (0.0, -3.5))
        self.assertEqual(lanesection.get_lane_border(0, 5.0), (0.0, 0.0))

    def test_varying_width(self):
        """宽度随车道段局部弧长变化"""
        lanesection = LaneSection(10.0)
        lane = Lane(-1)
        lane.width.add_poly(0.0, 2.0, 0.1)
        lanesection.add_lane(lane)
        self.road.add_lanesection(lanesection)

        self.assertEqual(lanesection.get_lane_border(-1, 20.0), (0.0, -3.0))
        self.assertEqual(self.road.get_lane(20.0, -2.9).id, -1)
        self.assertIsNone(self.road.get_lane(20.0, -3.1))


class TestRoadCoordinateFrame(unittest.TestCase):
    """道路坐标系测试类"""

    def test_flat_straight(self):
        """平直道路上的坐标转换"""
        road = make_straight_road()
        np.testing.assert_allclose(road.get_transformation_matrix(5.0), np.eye(3), atol=1e-12)
        np.testing.assert_allclose(road.get_xyz(5.0, 2.0, 1.0), [5.0, 2.0, 1.0], atol=1e-12)

    def test_lane_offset(self):
        """车道偏移平移横向基线"""
        road = make_straight_road()
        road.lane_offset.add_poly(0.0, 1.5)
        np.testing.assert_allclose(road.get_xyz(5.0, 0.0, 0.0), [5.0, 1.5, 0.0], atol=1e-12)
        np.testing.assert_allclose(road.get_xyz(5.0, -1.5, 0.0), [5.0, 0.0, 0.0], atol=1e-12)

    def test_superelevation_roll(self):
        """超高使横向轴和法向轴绕切向滚转"""
        road = make_straight_road()
        theta = 0.1
        road.superelevation.add_poly(0.0, theta)
        trans_mat = road.get_transformation_matrix(5.0)

        np.testing.assert_allclose(trans_mat[:, 0], [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(trans_mat[:, 1], [0.0, math.cos(theta), math.sin(theta)], atol=1e-12)
        np.testing.assert_allclose(trans_mat[:, 2], [0.0, -math.sin(theta), math.cos(theta)], atol=1e-12)

    def test_heading(self):
        """横向轴指向参考线左侧"""
        road = Road(10.0, 2)
        road.ref_line.add_geometry(Line(0.0, 0.0, 0.0, math.pi / 2, 10.0))
        np.testing.assert_allclose(road.get_xyz(3.0, 2.0, 0.0), [-2.0, 3.0, 0.0], atol=1e-12)

    def test_composition_invariant(self):
        """世界坐标等于参考线位置加旋转后的偏移向量"""
        road = Road(10.0 + 5 * math.pi, 3)
        road.ref_line.add_geometry(Line(0.0, 0.0, 0.0, 0.3, 10.0))
        road.ref_line.add_geometry(Arc(10.0, 10 * math.cos(0.3), 10 * math.sin(0.3), 0.3, 5 * math.pi, 0.1))
        road.ref_line.elevation_profile.add_poly(0.0, 2.0, 0.02, 0.001)
        road.lane_offset.add_poly(0.0, 0.5, 0.01, -0.0005)
        road.superelevation.add_poly(0.0, 0.0, 0.005)
        road.superelevation.add_poly(12.0, 0.06, -0.002)

        rng = np.random.default_rng(42)
        for s, t, z in zip(rng.uniform(-2.0, road.length + 2.0, 50),
                           rng.uniform(-10.0, 10.0, 50),
                           rng.uniform(-1.0, 3.0, 50)):
            trans_mat = road.get_transformation_matrix(s)
            expected = road.ref_line.get_xyz(s) + trans_mat @ np.array([0.0, t + road.lane_offset.get(s), z])
            np.testing.assert_allclose(road.get_xyz(s, t, z), expected, atol=1e-9)

            # 旋转矩阵正交且行列式为1
            np.testing.assert_allclose(trans_mat.T @ trans_mat, np.eye(3), atol=1e-9)
            self.assertAlmostEqual(np.linalg.det(trans_mat), 1.0, places=9)

    def test_banked_arc_point(self):
        """超高圆弧上的手算点

        半径10的左转圆弧在s=5π处到达(10, 10)，切向为+y。
        超高角θ下横向轴为(-cosθ, 0, sinθ)，法向轴为(sinθ, 0, cosθ)。
        """
        theta = 0.1
        road = Road(5 * math.pi, 5)
        road.ref_line.add_geometry(Arc(0.0, 0.0, 0.0, 0.0, 5 * math.pi, 0.1))
        road.superelevation.add_poly(0.0, theta)
        road.lane_offset.add_poly(0.0, 0.5)

        # t' = 1.5 + 0.5 = 2.0, z = 1.0
        expected = [10.0 - 2.0 * math.cos(theta) + math.sin(theta),
                    10.0,
                    2.0 * math.sin(theta) + math.cos(theta)]
        np.testing.assert_allclose(road.get_xyz(5 * math.pi, 1.5, 1.0), expected, atol=1e-9)
        np.testing.assert_allclose(expected, [8.109825086090777, 10.0, 1.194670998571682], atol=1e-12)

    def test_frame_continuous_across_geometries(self):
        """几何体交界处旋转矩阵连续"""
        road = Road(20.0, 4)
        road.ref_line.add_geometry(Line(0.0, 0.0, 0.0, 0.0, 10.0))
        road.ref_line.add_geometry(Arc(10.0, 10.0, 0.0, 0.0, 10.0, 0.05))
        before = road.get_transformation_matrix(10.0 - 1e-7)
        after = road.get_transformation_matrix(10.0 + 1e-7)
        np.testing.assert_allclose(before, after, atol=1e-6)

    def test_extrapolation(self):
        """超出道路长度时外推"""
        road = make_straight_road(30.0)
        np.testing.assert_allclose(road.get_xyz(-5.0, 0.0, 0.0), [-5.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(road.get_xyz(35.0, 1.0, 0.0), [35.0, 1.0, 0.0], atol=1e-12)

    def test_invalid_length(self):
        with self.assertRaises(ValueError):
            Road(0.0, 5)

    def test_default_junction(self):
        self.assertEqual(make_straight_road().junction, NO_JUNCTION)


class TestRoadSet(unittest.TestCase):
    """道路集合测试类"""

    def test_order_by_id(self):
        """按id升序遍历，重复id被忽略"""
        roads = RoadSet()
        for road_id in (5, 2, 9):
            self.assertTrue(roads.add(make_straight_road(id=road_id)))
        duplicate = make_straight_road(id=5)
        self.assertFalse(roads.add(duplicate))

        self.assertEqual([road.id for road in roads], [2, 5, 9])
        self.assertEqual(len(roads), 3)
        self.assertIsNot(roads.get(5), duplicate)
        self.assertIn(9, roads)
        self.assertIsNone(roads.get(7))

    def test_init_from_iterable(self):
        roads = RoadSet([make_straight_road(id=3), make_straight_road(id=1)])
        self.assertEqual(roads.keys(), [1, 3])


if __name__ == '__main__':
    # 运行测试
    unittest.main(verbosity=2)
