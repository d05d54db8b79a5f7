"""
Skeleton Renderer - bone line state driven by keypoint activation.

Holds one LineSegment per bone. Topology is fixed at initialize(); each
update() shows a bone only when both of its keypoints are active and
copies their 3D positions into the segment endpoints. Hidden segments
keep their previous endpoints.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging

import numpy as np

from .skeleton_definitions import (
    BONE_CONNECTIONS,
    KEYPOINT_NAMES,
    NUM_KEYPOINTS,
    BonePair,
    SkeletonTopologyError,
    get_bone_name,
    validate_bone_pairs
)

logger = logging.getLogger(__name__)


@dataclass
class LineSegment:
    """Render primitive for one bone."""
    name: str
    start: np.ndarray = field(default_factory=lambda: np.zeros(3))
    end: np.ndarray = field(default_factory=lambda: np.zeros(3))
    visible: bool = False
    width: float = 5.0
    color: Tuple[int, int, int] = (255, 255, 255)

    @property
    def endpoints(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.start, self.end


class SkeletonRenderer:
    """
    Maintains line segments for a fixed bone topology.

    Usage:
        renderer = SkeletonRenderer()
        renderer.initialize(build_bone_pairs())
        for frame in frames:
            ...decode and gate keypoints...
            renderer.update(keypoints)
    """

    def __init__(self, num_keypoints: int = NUM_KEYPOINTS,
                 keypoint_names: Sequence[str] = KEYPOINT_NAMES):
        self.num_keypoints = num_keypoints
        self.keypoint_names = list(keypoint_names)
        self._bone_pairs: Optional[Tuple[BonePair, ...]] = None
        self._segments: List[LineSegment] = []

    @property
    def initialized(self) -> bool:
        return self._bone_pairs is not None

    @property
    def bone_pairs(self) -> Tuple[BonePair, ...]:
        return self._bone_pairs or ()

    @property
    def segments(self) -> List[LineSegment]:
        return self._segments

    def initialize(self, bone_pairs: Sequence[BonePair]):
        """
        Allocate one LineSegment per bone. Can only be called once.

        Raises:
            RuntimeError: If already initialized
            SkeletonTopologyError: If an entry is not a BonePair or an index is
                                   outside [0, num_keypoints)
        """
        if self.initialized:
            raise RuntimeError("SkeletonRenderer is already initialized")

        validate_bone_pairs(bone_pairs, self.num_keypoints)
        if len(bone_pairs) != len(BONE_CONNECTIONS):
            logger.warning(f"[SkeletonRenderer] Bone table has {len(bone_pairs)} entries, "
                           f"the COCO topology has {len(BONE_CONNECTIONS)}")

        self._bone_pairs = tuple(bone_pairs)
        self._segments = [
            LineSegment(
                name=get_bone_name(pair, self.keypoint_names),
                width=pair.width,
                color=pair.color
            )
            for pair in self._bone_pairs
        ]
        logger.info(f"[SkeletonRenderer] Initialized {len(self._segments)} bones "
                    f"for {self.num_keypoints} keypoints")

    def update(self, keypoints):
        """
        Refresh segment visibility and endpoints from the current keypoints.

        Args:
            keypoints: Indexable sequence of records with `.active` and
                       `.position` (x, y, z), e.g. a KeypointSet

        Raises:
            RuntimeError: If called before initialize()
            SkeletonTopologyError: If there are fewer keypoints than the topology needs
        """
        if not self.initialized:
            raise RuntimeError("SkeletonRenderer.update() called before initialize()")
        if len(keypoints) < self.num_keypoints:
            raise SkeletonTopologyError(
                f"Got {len(keypoints)} keypoints, topology needs {self.num_keypoints}"
            )

        for pair, segment in zip(self._bone_pairs, self._segments):
            start_kp = keypoints[pair.start]
            end_kp = keypoints[pair.end]

            if start_kp.active and end_kp.active:
                segment.visible = True
                segment.start = np.array(start_kp.position, dtype=np.float64)
                segment.end = np.array(end_kp.position, dtype=np.float64)
            else:
                segment.visible = False

    def visible_segments(self) -> List[LineSegment]:
        return [seg for seg in self._segments if seg.visible]

    def visibility_mask(self) -> np.ndarray:
        return np.array([seg.visible for seg in self._segments], dtype=bool)
