#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
通用几何工具
包含网格、包围盒等基础数据结构，以及所有几何类型共用的数值算法：
包围盒采样、黄金分割搜索、Douglas-Peucker折线简化和边界缝合网格生成。

作者: OdrGeometry项目组
版本: 1.0.0
"""

import bisect
import math
import logging
from typing import Callable, Dict, Iterable, Iterator, List, Sequence

import numpy as np
from shapely.geometry import Point, box

logger = logging.getLogger(__name__)


class Mesh3D:
    """
    三维三角网格
    vertices为顶点序列，indices为扁平的三角形索引序列（每3个一组）
    """

    def __init__(self, vertices: List = None, indices: List[int] = None):
        self.vertices = list(vertices) if vertices is not None else []
        self.indices = list(indices) if indices is not None else []

    @property
    def num_triangles(self) -> int:
        return len(self.indices) // 3

    def add_mesh(self, other: 'Mesh3D'):
        """
        追加另一个网格，索引按当前顶点数偏移

        Args:
            other: 待合并的网格
        """
        offset = len(self.vertices)
        self.vertices.extend(other.vertices)
        self.indices.extend(idx + offset for idx in other.indices)

    def get_obj(self) -> str:
        """
        生成Wavefront OBJ格式文本（OBJ索引从1开始）

        Returns:
            OBJ文本
        """
        lines = [f"# Vertices: {len(self.vertices)}", f"# Faces: {self.num_triangles}"]
        for vertex in self.vertices:
            lines.append(f"v {vertex[0]:.6f} {vertex[1]:.6f} {vertex[2]:.6f}")
        for i in range(0, len(self.indices) - 2, 3):
            a, b, c = self.indices[i:i + 3]
            lines.append(f"f {a + 1} {b + 1} {c + 1}")
        return "\n".join(lines) + "\n"


class Box2D:
    """二维轴对齐包围盒"""

    def __init__(self, min_pt=(0.0, 0.0), max_pt=(0.0, 0.0)):
        self.min = np.array(min_pt, dtype=float)
        self.max = np.array(max_pt, dtype=float)
        self.center = (self.min + self.max) / 2.0
        self.width = float(self.max[0] - self.min[0])
        self.height = float(self.max[1] - self.min[1])

    def get_distance(self, pt) -> float:
        """
        计算点到包围盒的距离，点在盒内时为0

        Args:
            pt: 二维点

        Returns:
            距离值
        """
        rect = box(self.min[0], self.min[1], self.max[0], self.max[1])
        return rect.distance(Point(pt[0], pt[1]))

    def __repr__(self):
        return f"Box2D(min={self.min.tolist()}, max={self.max.tolist()})"


class SortedKeySet:
    """
    按键函数排序的唯一元素集合

    元素的唯一性与顺序都由key决定，例如 SortedKeySet(key=attrgetter('id'))。
    """

    def __init__(self, key: Callable, items: Iterable = None):
        self._key = key
        self._keys = []
        self._items = {}
        if items is not None:
            for item in items:
                self.add(item)

    def add(self, item) -> bool:
        """
        插入元素

        Returns:
            插入成功返回True，键已存在时返回False且不替换原元素
        """
        k = self._key(item)
        if k in self._items:
            return False
        bisect.insort(self._keys, k)
        self._items[k] = item
        return True

    def get(self, k, default=None):
        return self._items.get(k, default)

    def keys(self) -> List:
        return list(self._keys)

    def __contains__(self, k) -> bool:
        return k in self._items

    def __iter__(self) -> Iterator:
        return (self._items[k] for k in self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __getitem__(self, k):
        return self._items[k]


def extract_keys(input_map: Dict) -> List:
    """返回字典的键（升序）"""
    return sorted(input_map.keys())


def generate_mesh_from_borders(inner_border: Sequence, outer_border: Sequence) -> Mesh3D:
    """
    由内外两条等长边界线生成条带网格（梯形三角化）

    顶点缓冲为outer正序接inner逆序，共2n个顶点。两个索引从两端向中间推进，
    每步生成两个三角形。只依赖outer[i]与inner[i]按索引对应，不检查几何方向。

    Args:
        inner_border: 内边界点序列
        outer_border: 外边界点序列

    Returns:
        三角网格
    """
    if len(inner_border) != len(outer_border):
        raise ValueError(
            f"内外边界点数必须相等: inner={len(inner_border)}, outer={len(outer_border)}"
        )

    out_mesh = Mesh3D(vertices=list(outer_border))
    out_mesh.vertices.extend(reversed(list(inner_border)))

    num_pts = len(out_mesh.vertices)
    l_idx = 1
    r_idx = num_pts - 2
    while l_idx < (num_pts >> 1):
        out_mesh.indices.extend([l_idx, l_idx - 1, r_idx + 1, r_idx, l_idx, r_idx + 1])
        l_idx += 1
        r_idx -= 1

    return out_mesh


def get_bbox_for_s_values(s_values: Sequence[float], get_xy: Callable) -> Box2D:
    """
    在给定参数值处采样曲线并计算包围盒

    x、y方向的极值分别独立求取，包围盒角点不一定是采样点。

    Args:
        s_values: 参数值序列
        get_xy: 参数到二维点的映射

    Returns:
        包围盒
    """
    if len(s_values) == 0:
        raise ValueError("参数值序列为空，无法计算包围盒")

    points = np.array([get_xy(s_val)[:2] for s_val in s_values], dtype=float)
    return Box2D(points.min(axis=0), points.max(axis=0))


def golden_section_search(f: Callable[[float], float], a: float, b: float, tol: float) -> float:
    """
    黄金分割搜索，求单峰函数在[a, b]上的极小点

    迭代次数由区间宽度与容差预先确定，中途不提前退出。

    Args:
        f: 无副作用的一元函数
        a: 区间左端
        b: 区间右端
        tol: 区间宽度的绝对容差

    Returns:
        极小点估计值
    """
    invphi = (math.sqrt(5) - 1) / 2
    invphi2 = (3 - math.sqrt(5)) / 2

    h = b - a
    if h <= tol:
        return 0.5 * (a + b)

    # 达到容差所需的步数
    n = int(math.ceil(math.log(tol / h) / math.log(invphi)))

    c = a + invphi2 * h
    d = a + invphi * h
    yc = f(c)
    yd = f(d)

    for _ in range(n - 1):
        if yc < yd:
            b = d
            d = c
            yd = yc
            h = invphi * h
            c = a + invphi2 * h
            yc = f(c)
        else:
            a = c
            c = d
            yc = yd
            h = invphi * h
            d = a + invphi * h
            yd = f(d)

    if yc < yd:
        return 0.5 * (a + d)
    return 0.5 * (c + b)


def _rejection_distance(point: np.ndarray, chord_start: np.ndarray, direction: np.ndarray) -> float:
    """点到弦的垂直距离（向量拒绝），direction为零向量时即为位移长度"""
    pv = point - chord_start
    return float(np.linalg.norm(pv - np.dot(direction, pv) * direction))


def rdp(points: Sequence, epsilon: float, start_idx: int = 0, step: int = 1,
        end_idx: int = -1) -> List:
    """
    Ramer-Douglas-Peucker折线简化

    支持按步长step在更大的缓冲区中简化子序列，不需要复制。
    返回新的列表，元素为输入中的原始点对象。

    Args:
        points: D维点序列
        epsilon: 距离容差
        start_idx: 起始索引
        step: 步长
        end_idx: 结束索引（不含），<=0表示到序列末尾

    Returns:
        简化后的点列表
    """
    end = end_idx if end_idx > 0 else len(points)
    if end <= start_idx:
        return []
    last_idx = ((end - start_idx - 1) // step) * step + start_idx

    if (last_idx + 1 - start_idx) < 2:
        return [points[start_idx]]

    p_start = np.asarray(points[start_idx], dtype=float)
    delta = np.asarray(points[last_idx], dtype=float) - p_start
    mag = np.linalg.norm(delta)
    if mag > 0.0:
        delta = delta / mag

    # 找到距离首尾弦最远的点
    d_max = 0.0
    d_max_idx = 0
    for idx in range(start_idx + step, last_idx, step):
        d = _rejection_distance(np.asarray(points[idx], dtype=float), p_start, delta)
        if d > d_max:
            d_max = d
            d_max_idx = idx

    if d_max > epsilon:
        left_part = rdp(points, epsilon, start_idx, step, d_max_idx + 1)
        right_part = rdp(points, epsilon, d_max_idx, step, end)
        # 合并结果（去除重复的分割点）
        return left_part[:-1] + right_part

    return [points[start_idx], points[last_idx]]
