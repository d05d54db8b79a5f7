#!/usr/bin/env python3
"""
Standalone demo for the pose overlay pipeline.

Builds synthetic heatmap/offset tensors for a standing figure, runs them
through decode → gate → render, and writes the OpenCV overlay and a
matplotlib snapshot to disk.

Usage:
    python demo_overlay.py --frame-width 640 --frame-height 480
    python demo_overlay.py --hide left_wrist right_ankle --output overlay.png
"""

import argparse
import logging
import sys
from pathlib import Path

import cv2
import numpy as np

from poseoverlay.pose_processing.keypoint_decoder import compute_stride
from poseoverlay.pose_processing.pose_pipeline import PoseOverlayPipeline
from poseoverlay.process_management.confighandler import ConfigHandler
from poseoverlay.process_management.pipeline_config import PipelineConfig, load_pipeline_config
from poseoverlay.visualization.overlay_visualizer import OverlayVisualizer
from poseoverlay.visualization.skeleton_definitions import KEYPOINT_NAMES

logger = logging.getLogger('demo_overlay')

# Standing figure in 480x480 model space (x right, y up)
STANDING_POSE = [
    (240, 420),                # 0: nose
    (252, 432), (228, 432),    # 1-2: eyes
    (266, 424), (214, 424),    # 3-4: ears
    (290, 370), (190, 370),    # 5-6: shoulders
    (310, 300), (170, 300),    # 7-8: elbows
    (320, 235), (160, 235),    # 9-10: wrists
    (270, 240), (210, 240),    # 11-12: hips
    (275, 150), (205, 150),    # 13-14: knees
    (280, 60), (200, 60),      # 15-16: ankles
]


def generate_synthetic_outputs(config: PipelineConfig, grid_size: int = 30,
                               hidden=(), confidence: float = 0.9, sigma: float = 1.0):
    """
    Build (1, H, W, K) heatmaps and (1, H, W, 2K) offsets encoding STANDING_POSE.

    Each joint gets a Gaussian blob peaking at its grid cell; the offset at the
    peak cell carries the sub-cell remainder. Joints in `hidden` get an
    empty heatmap.
    """
    num_kps = config.num_keypoints
    input_h = config.input_height
    stride = compute_stride(input_h, grid_size)
    if stride == 0:
        raise ValueError(f"grid_size={grid_size} gives stride 0 for input height {input_h}")

    heatmaps = np.zeros((1, grid_size, grid_size, num_kps), dtype=np.float32)
    offsets = np.zeros((1, grid_size, grid_size, 2 * num_kps), dtype=np.float32)
    rows, cols = np.mgrid[0:grid_size, 0:grid_size]

    for k, (x_model, y_model) in enumerate(STANDING_POSE[:num_kps]):
        if KEYPOINT_NAMES[k] in hidden:
            continue
        # Model space is bottom-up; grid rows count from the top
        row_pos = input_h - y_model
        gx = min(grid_size - 1, int(x_model // stride))
        gy = min(grid_size - 1, int(row_pos // stride))

        blob = np.exp(-((cols - gx) ** 2 + (rows - gy) ** 2) / (2 * sigma ** 2))
        heatmaps[0, :, :, k] = confidence * blob
        offsets[0, gy, gx, k] = row_pos - gy * stride
        offsets[0, gy, gx, k + num_kps] = x_model - gx * stride

    return heatmaps, offsets


def main():
    parser = argparse.ArgumentParser(description="Render a synthetic pose overlay")
    parser.add_argument("--config", default=None,
                        help="JSON config file (defaults are used if omitted)")
    parser.add_argument("--frame-width", type=int, default=640)
    parser.add_argument("--frame-height", type=int, default=480)
    parser.add_argument("--grid-size", type=int, default=30,
                        help="Heatmap grid height/width (default: 30)")
    parser.add_argument("--hide", nargs="*", default=[], choices=KEYPOINT_NAMES,
                        help="Joints to give an empty heatmap")
    parser.add_argument("--output", default="overlay.png",
                        help="Overlay image path (default: overlay.png)")
    parser.add_argument("--snapshot", default=None,
                        help="Optional matplotlib snapshot path")
    args = parser.parse_args()

    if args.config:
        config = load_pipeline_config(ConfigHandler(Path(args.config).resolve()))
    else:
        config = load_pipeline_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    pipeline = PoseOverlayPipeline(config)
    heatmaps, offsets = generate_synthetic_outputs(config, args.grid_size, hidden=set(args.hide))
    pipeline.process_outputs(heatmaps, offsets, (args.frame_width, args.frame_height))

    for kp in pipeline.keypoints:
        logger.info(f"{kp.name:>15}: ({kp.position[0]:7.1f}, {kp.position[1]:7.1f}) "
                    f"conf={kp.confidence:.2f} active={kp.active}")

    frame = np.zeros((args.frame_height, args.frame_width, 3), dtype=np.uint8)
    radius = config.keypoint_radius if config.draw_keypoints else 0
    OverlayVisualizer.draw_overlay(frame, pipeline.renderer, pipeline.keypoints, radius)
    if not cv2.imwrite(args.output, frame):
        logger.error(f"Failed to write overlay to {args.output}")
        return 1
    logger.info(f"Overlay written to {args.output} "
                f"({int(pipeline.renderer.visibility_mask().sum())}/{len(pipeline.renderer.segments)} bones)")

    if args.snapshot:
        image = OverlayVisualizer.render_snapshot(
            pipeline.renderer, pipeline.keypoints, (args.frame_width, args.frame_height)
        )
        image.save(args.snapshot)
        logger.info(f"Snapshot written to {args.snapshot}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
