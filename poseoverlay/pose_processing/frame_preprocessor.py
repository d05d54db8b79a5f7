"""
Frame preprocessing for the pose network.

Resizes a BGR frame to the square model input (aspect ratio is not
preserved; the decoder undoes the distortion) and applies a model-specific
normalization callable.
"""

from typing import Callable, Optional
import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def scale_to_unit_range(image: np.ndarray) -> np.ndarray:
    """Default normalization: uint8 BGR -> float32 in [0, 1]."""
    return image.astype(np.float32) / 255.0


class FramePreprocessor:
    """
    Prepares camera/video frames for inference.

    Args:
        input_width: Model input width
        input_height: Model input height
        normalize_fn: Callable applied to the resized (H, W, 3) image.
                      Defaults to scale_to_unit_range.
    """

    def __init__(self, input_width: int = 480, input_height: int = 480,
                 normalize_fn: Optional[Callable[[np.ndarray], np.ndarray]] = None):
        if input_width <= 0 or input_height <= 0:
            raise ValueError(f"Input size must be positive, got {input_width}x{input_height}")
        self.input_width = int(input_width)
        self.input_height = int(input_height)
        self.normalize_fn = normalize_fn or scale_to_unit_range

        logger.debug(f"[Preprocessor] Resizing frames to {self.input_width}x{self.input_height}")

    def prepare(self, frame: np.ndarray) -> np.ndarray:
        """
        Resize and normalize a frame.

        Args:
            frame: (H, W, 3) BGR or (H, W, 4) BGRA image

        Returns:
            np.ndarray: Normalized (input_height, input_width, 3) image
        """
        if frame is None or frame.ndim != 3 or frame.shape[2] not in (3, 4):
            shape = None if frame is None else frame.shape
            raise ValueError(f"Expected (H, W, 3) or (H, W, 4) frame, got {shape}")

        if frame.shape[2] == 4:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)

        if frame.shape[0] != self.input_height or frame.shape[1] != self.input_width:
            resized = cv2.resize(frame, (self.input_width, self.input_height),
                                 interpolation=cv2.INTER_LINEAR)
        else:
            resized = frame

        return self.normalize_fn(resized)
