"""
Skeleton Connection Definitions for the COCO 17-keypoint body model

Keypoint Layout:
- 0:     nose
- 1-4:   eyes and ears
- 5-10:  shoulders, elbows, wrists
- 11-16: hips, knees, ankles

The bone table is a fixed 18-entry topology grouped by body region
(face, torso, arms, legs). Colors are BGR tuples for OpenCV drawing.
"""

import numbers
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

NUM_KEYPOINTS = 17

KEYPOINT_NAMES = [
    'nose',
    'left_eye', 'right_eye',
    'left_ear', 'right_ear',
    'left_shoulder', 'right_shoulder',
    'left_elbow', 'right_elbow',
    'left_wrist', 'right_wrist',
    'left_hip', 'right_hip',
    'left_knee', 'right_knee',
    'left_ankle', 'right_ankle',
]

DEFAULT_LINE_WIDTH = 5.0

# Group colors (BGR)
GROUP_COLORS = {
    'face': (0, 0, 255),     # Red
    'torso': (255, 0, 255),  # Magenta
    'arms': (255, 0, 0),     # Blue
    'legs': (0, 255, 0),     # Green
}

# (start_idx, end_idx, group)
BONE_CONNECTIONS = [
    # Face
    (0, 1, 'face'),    # Nose to left eye
    (0, 2, 'face'),    # Nose to right eye
    (1, 3, 'face'),    # Left eye to left ear
    (2, 4, 'face'),    # Right eye to right ear
    # Torso
    (5, 6, 'torso'),   # Left shoulder to right shoulder
    (5, 11, 'torso'),  # Left shoulder to left hip
    (6, 12, 'torso'),  # Right shoulder to right hip
    (5, 12, 'torso'),  # Left shoulder to right hip
    (6, 11, 'torso'),  # Right shoulder to left hip
    (11, 12, 'torso'), # Left hip to right hip
    # Arms
    (5, 7, 'arms'), (7, 9, 'arms'),
    (6, 8, 'arms'), (8, 10, 'arms'),
    # Legs
    (11, 13, 'legs'), (13, 15, 'legs'),
    (12, 14, 'legs'), (14, 16, 'legs'),
]


class SkeletonTopologyError(ValueError):
    """Raised when a bone table references keypoints that do not exist."""


@dataclass(frozen=True)
class BonePair:
    """
    Immutable bone definition connecting two keypoints.

    Attributes:
        start: Index of the starting keypoint
        end: Index of the ending keypoint
        group: Body region ('face', 'torso', 'arms', 'legs')
        width: Display line width
        color: BGR color tuple
    """
    start: int
    end: int
    group: str
    width: float = DEFAULT_LINE_WIDTH
    color: Tuple[int, int, int] = (255, 255, 255)


def build_bone_pairs(
    group_colors: Dict[str, Sequence[int]] = None,
    line_width: float = DEFAULT_LINE_WIDTH,
    group_line_widths: Dict[str, float] = None
) -> List[BonePair]:
    """
    Build the 18-entry bone table with per-group styling.

    Args:
        group_colors: BGR color per group (defaults to GROUP_COLORS)
        line_width: Width used for groups without an override
        group_line_widths: Optional per-group width overrides

    Returns:
        list: BonePair entries in fixed topology order
    """
    colors = dict(GROUP_COLORS)
    if group_colors:
        colors.update(group_colors)
    widths = group_line_widths or {}

    pairs = []
    for start, end, group in BONE_CONNECTIONS:
        pairs.append(BonePair(
            start=start,
            end=end,
            group=group,
            width=float(widths.get(group, line_width)),
            color=tuple(int(c) for c in colors[group])
        ))
    return pairs


def validate_bone_pairs(bone_pairs: Sequence[BonePair], num_keypoints: int = NUM_KEYPOINTS):
    """
    Check that every bone references a keypoint in [0, num_keypoints).

    Raises:
        SkeletonTopologyError: On the first malformed or out-of-range entry
    """
    for pair_idx, pair in enumerate(bone_pairs):
        if not isinstance(pair, BonePair):
            raise SkeletonTopologyError(
                f"Bone {pair_idx} must be a BonePair, got {type(pair).__name__}: {pair!r}"
            )
        for idx in (pair.start, pair.end):
            if not isinstance(idx, numbers.Integral) or isinstance(idx, bool):
                raise SkeletonTopologyError(
                    f"Bone {pair_idx} has non-integer keypoint index {idx!r}"
                )
            if idx < 0 or idx >= num_keypoints:
                raise SkeletonTopologyError(
                    f"Bone {pair_idx} references keypoint {idx}, "
                    f"valid range is [0, {num_keypoints})"
                )


def get_bone_name(pair: BonePair, keypoint_names: Sequence[str] = KEYPOINT_NAMES) -> str:
    """Name a bone after its endpoints, e.g. 'nose_to_left_eye'."""
    return f"{keypoint_names[pair.start]}_to_{keypoint_names[pair.end]}"
