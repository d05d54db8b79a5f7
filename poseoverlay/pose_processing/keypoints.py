"""
Keypoint records and activation gating.

Each of the 17 body keypoints is a long-lived record that the pipeline
mutates once per frame. A keypoint is active when its confidence reaches
the configured threshold; inactive keypoints keep their last position.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..visualization.skeleton_definitions import KEYPOINT_NAMES, NUM_KEYPOINTS


DEFAULT_MIN_CONFIDENCE = 0.30
DEFAULT_DEPTH = -1.0


@dataclass
class Keypoint:
    """
    Single keypoint state in frame space.

    Attributes:
        name: Joint name (COCO convention)
        position: [x, y, z] array; z is the fixed display depth
        confidence: Heatmap peak value for this frame
        active: confidence >= threshold
    """
    name: str
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    confidence: float = 0.0
    active: bool = False


class KeypointSet:
    """
    Fixed-size collection of Keypoint records updated from decoder output.

    Args:
        min_confidence: Activation threshold (fraction, 0.0-1.0)
        depth: z-coordinate assigned to every keypoint
        names: Joint names; length defines the keypoint count
    """

    def __init__(self, min_confidence: float = DEFAULT_MIN_CONFIDENCE,
                 depth: float = DEFAULT_DEPTH,
                 names: Sequence[str] = KEYPOINT_NAMES):
        self.min_confidence = float(min_confidence)
        self.depth = float(depth)
        self.keypoints: List[Keypoint] = [
            Keypoint(name=name, position=np.array([0.0, 0.0, self.depth]))
            for name in names
        ]

    def __len__(self):
        return len(self.keypoints)

    def __getitem__(self, idx):
        return self.keypoints[idx]

    def __iter__(self):
        return iter(self.keypoints)

    def is_active(self, confidence: float) -> bool:
        return confidence >= self.min_confidence

    def update_from_decoded(self, decoded: np.ndarray):
        """
        Apply one frame of decoder output.

        Args:
            decoded: (N, 3) array of [x, y, confidence], N == len(self)

        Raises:
            ValueError: If the row count does not match the keypoint count
        """
        decoded = np.asarray(decoded, dtype=np.float64)
        if decoded.ndim != 2 or decoded.shape != (len(self.keypoints), 3):
            raise ValueError(
                f"Decoded keypoints shape {decoded.shape}, expected ({len(self.keypoints)}, 3)"
            )

        for kp, (x, y, confidence) in zip(self.keypoints, decoded):
            kp.confidence = float(confidence)
            kp.active = self.is_active(kp.confidence)
            kp.position = np.array([x, y, self.depth])

    def active_mask(self) -> np.ndarray:
        """Boolean (N,) array of active flags."""
        return np.array([kp.active for kp in self.keypoints], dtype=bool)

    def positions(self) -> np.ndarray:
        """(N, 3) array of current positions."""
        return np.stack([kp.position for kp in self.keypoints])

    def confidences(self) -> np.ndarray:
        return np.array([kp.confidence for kp in self.keypoints])

    def get(self, name: str) -> Optional[Keypoint]:
        for kp in self.keypoints:
            if kp.name == name:
                return kp
        return None


def create_keypoint_set(min_confidence: float = DEFAULT_MIN_CONFIDENCE,
                        depth: float = DEFAULT_DEPTH,
                        num_keypoints: int = NUM_KEYPOINTS) -> KeypointSet:
    """Create a KeypointSet for the first `num_keypoints` COCO joints."""
    if num_keypoints > len(KEYPOINT_NAMES):
        raise ValueError(
            f"num_keypoints={num_keypoints} exceeds the {len(KEYPOINT_NAMES)} known joint names"
        )
    return KeypointSet(min_confidence, depth, KEYPOINT_NAMES[:num_keypoints])
