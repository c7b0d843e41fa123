from smil_timeline.geometry.matrix import (
    IDENTITY,
    Matrix,
    apply_to_point,
    decompose_matrix,
    inverse,
    is_identity,
    multiply,
    parse_transform,
)
from smil_timeline.geometry.path_data import normalize_path, serialize_path, transform_path
from smil_timeline.geometry.reprojector import (
    apply_deltas,
    build_delta_map,
    compute_transform_deltas,
    reproject_animation,
)
from smil_timeline.geometry.values import RotateValue, format_number

__all__ = [
    "IDENTITY",
    "Matrix",
    "RotateValue",
    "apply_deltas",
    "apply_to_point",
    "build_delta_map",
    "compute_transform_deltas",
    "decompose_matrix",
    "format_number",
    "inverse",
    "is_identity",
    "multiply",
    "normalize_path",
    "parse_transform",
    "reproject_animation",
    "serialize_path",
    "transform_path",
]
