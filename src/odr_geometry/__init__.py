"""OdrGeometry - OpenDRIVE道路几何核心

将道路参数坐标(s, t, z)转换为三维世界坐标，并提供各类几何共用的数值工具。
主要模块包括：
- utils: 网格、包围盒、黄金分割搜索、折线简化和边界缝合
- road: 道路坐标系与车道段索引
- mesh_builder: 车道网格生成
"""

__version__ = "1.0.0"
__author__ = "OdrGeometry Team"

from .utils import (
    Box2D,
    Mesh3D,
    SortedKeySet,
    extract_keys,
    generate_mesh_from_borders,
    get_bbox_for_s_values,
    golden_section_search,
    rdp,
)
from .cubic_spline import CubicSpline, Poly3
from .geometries import Arc, Line, ParamPoly3, RoadGeometry, Spiral
from .ref_line import RefLine
from .lanes import Lane, LaneSection
from .road import NO_JUNCTION, Road, RoadSet
from .mesh_builder import RoadMeshBuilder
from .logging_config import setup_logging

__all__ = [
    "Box2D",
    "Mesh3D",
    "SortedKeySet",
    "extract_keys",
    "generate_mesh_from_borders",
    "get_bbox_for_s_values",
    "golden_section_search",
    "rdp",
    "CubicSpline",
    "Poly3",
    "RoadGeometry",
    "Line",
    "Arc",
    "Spiral",
    "ParamPoly3",
    "RefLine",
    "Lane",
    "LaneSection",
    "NO_JUNCTION",
    "Road",
    "RoadSet",
    "RoadMeshBuilder",
    "setup_logging",
]
