"""
Skeleton Visualization Module
Bone topology, line-segment state and overlay drawing for the COCO 17-keypoint body.
"""

from .overlay_visualizer import OverlayVisualizer
from .skeleton_definitions import (
    BONE_CONNECTIONS,
    GROUP_COLORS,
    KEYPOINT_NAMES,
    NUM_KEYPOINTS,
    BonePair,
    SkeletonTopologyError,
    build_bone_pairs
)
from .skeleton_renderer import LineSegment, SkeletonRenderer

__all__ = [
    'OverlayVisualizer',
    'BONE_CONNECTIONS',
    'GROUP_COLORS',
    'KEYPOINT_NAMES',
    'NUM_KEYPOINTS',
    'BonePair',
    'SkeletonTopologyError',
    'build_bone_pairs',
    'LineSegment',
    'SkeletonRenderer'
]
