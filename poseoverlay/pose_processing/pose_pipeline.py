"""
Pose Overlay Pipeline - frame-synchronous decode and render driver.

Pipeline (one call per frame, strictly sequential):
    Frame → FramePreprocessor → inference_fn → (heatmaps, offsets)
          → KeypointDecoder → KeypointSet (threshold gate) → SkeletonRenderer

Inference is an external collaborator: any callable taking the preprocessed
image and returning (heatmaps, offsets), or None when no output is ready.
A frame without output is skipped and the previous keypoint and bone
state is kept.
"""

import time
import logging
from typing import Callable, Optional, Tuple

import numpy as np

from .frame_preprocessor import FramePreprocessor
from .keypoint_decoder import KeypointDecoder
from .keypoints import KeypointSet, create_keypoint_set
from ..process_management.pipeline_config import PipelineConfig
from ..utils.periodic_logger import PeriodicLogger
from ..visualization.skeleton_renderer import SkeletonRenderer

logger = logging.getLogger(__name__)

InferenceFn = Callable[[np.ndarray], Optional[Tuple[np.ndarray, np.ndarray]]]


class PoseOverlayPipeline:
    """
    Owns the decoder, keypoint records and skeleton renderer for one video stream.

    Args:
        config: PipelineConfig (defaults if None)
        inference_fn: Callable mapping a preprocessed image to (heatmaps, offsets)
        normalize_fn: Model-specific normalization passed to FramePreprocessor
    """

    def __init__(self, config: Optional[PipelineConfig] = None,
                 inference_fn: Optional[InferenceFn] = None,
                 normalize_fn: Optional[Callable[[np.ndarray], np.ndarray]] = None):
        self.config = config if config is not None else PipelineConfig()
        self.inference_fn = inference_fn

        self.preprocessor = FramePreprocessor(
            input_width=self.config.input_width,
            input_height=self.config.input_height,
            normalize_fn=normalize_fn
        )
        self.decoder = KeypointDecoder(
            input_height=self.config.input_height,
            input_width=self.config.input_width,
            num_keypoints=self.config.num_keypoints,
            heatmap_activation=self.config.heatmap_activation
        )
        self.keypoints: KeypointSet = create_keypoint_set(
            min_confidence=self.config.min_confidence,
            depth=self.config.depth,
            num_keypoints=self.config.num_keypoints
        )
        self.renderer = SkeletonRenderer(num_keypoints=self.config.num_keypoints)
        self.renderer.initialize(self.config.bone_pairs())

        self.last_decoded: Optional[np.ndarray] = None
        self.frames_processed = 0
        self.frames_skipped = 0
        self.periodic_logger = PeriodicLogger(
            'Pipeline', period_frames=self.config.log_period_frames, logger_obj=logger
        )

        logger.info(f"[Pipeline] Ready (min_confidence={self.config.min_confidence}, "
                    f"bones={len(self.renderer.segments)})")

    def process_outputs(self, heatmaps: Optional[np.ndarray], offsets: Optional[np.ndarray],
                        frame_size: Tuple[int, int],
                        input_size: Optional[Tuple[int, int]] = None) -> bool:
        """
        Decode one frame of network output and update the skeleton.

        Args:
            heatmaps: (1, H, W, K) heatmap tensor, or None if not ready
            offsets: (1, H, W, 2K) offset tensor, or None if not ready
            frame_size: (width, height) of the source frame
            input_size: (height, width) used for inference (defaults to config)

        Returns:
            bool: True if the frame was processed, False if skipped
        """
        if heatmaps is None or offsets is None:
            return self._skip_frame("Missing inference output")

        start = time.perf_counter()

        decoded = self.decoder.decode(heatmaps, offsets, frame_size, input_size)
        self.keypoints.update_from_decoded(decoded)
        self.renderer.update(self.keypoints)

        self.last_decoded = decoded
        self.frames_processed += 1

        elapsed_ms = (time.perf_counter() - start) * 1000
        self.periodic_logger.record_frame(
            elapsed_ms,
            active_keypoints=int(self.keypoints.active_mask().sum()),
            visible_bones=int(self.renderer.visibility_mask().sum())
        )
        self.periodic_logger.log_if_periodic()
        return True

    def process_frame(self, frame: Optional[np.ndarray]) -> bool:
        """
        Run preprocessing, inference, decode and render for one BGR frame.

        Returns:
            bool: True if the frame was processed, False if the frame or the
                  inference output was missing

        Raises:
            RuntimeError: If the pipeline was built without an inference callable
        """
        if self.inference_fn is None:
            raise RuntimeError("process_frame() requires an inference_fn; "
                               "use process_outputs() with precomputed tensors")

        if frame is None:
            return self._skip_frame("Missing frame")

        frame_height, frame_width = frame.shape[:2]
        model_input = self.preprocessor.prepare(frame)

        outputs = self.inference_fn(model_input)
        if outputs is None:
            return self.process_outputs(None, None, (frame_width, frame_height))

        heatmaps, offsets = outputs
        return self.process_outputs(heatmaps, offsets, (frame_width, frame_height))

    def _skip_frame(self, reason: str) -> bool:
        """Count a skipped frame; keypoint and bone state are left as they are."""
        self.frames_skipped += 1
        self.periodic_logger.record_skip()
        self.periodic_logger.log_if_periodic()
        logger.debug(f"[Pipeline] {reason}, frame skipped")
        return False
