"""
Skeleton Overlay Visualization Utilities

Draws the renderer's line segments and active keypoints onto video frames
(OpenCV) or into a standalone matplotlib snapshot (returned as PIL image).

Frame space is bottom-up (y grows upward) while image rows grow downward,
so drawing flips y: row = frame_height - y.
"""

from typing import Optional, Tuple

import cv2
import numpy as np
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.backends.backend_agg import FigureCanvasAgg
from PIL import Image

from .skeleton_renderer import SkeletonRenderer

# Reasonable upper bound for coordinate values before int conversion
MAX_COORD = 100000

KEYPOINT_COLOR = (0, 255, 255)  # Yellow (BGR)


def _bgr_to_rgb_unit(color):
    return (color[2] / 255, color[1] / 255, color[0] / 255)


def _is_drawable(x: float, y: float) -> bool:
    return (np.isfinite(x) and np.isfinite(y) and
            abs(x) <= MAX_COORD and abs(y) <= MAX_COORD)


class OverlayVisualizer:
    """
    Rendering helpers for the pose skeleton overlay.

    All methods are static; the renderer and keypoints are passed in.
    """

    @staticmethod
    def to_image_point(position, frame_height: int) -> Optional[Tuple[int, int]]:
        """
        Convert a frame-space position to integer image coordinates.

        Returns:
            (col, row) tuple, or None if the position is non-finite or absurd
        """
        x, y = float(position[0]), float(position[1])
        if not _is_drawable(x, y):
            return None
        return int(round(x)), int(round(frame_height - y))

    @staticmethod
    def draw_overlay(frame: np.ndarray, renderer: SkeletonRenderer, keypoints=None,
                     keypoint_radius: int = 4) -> np.ndarray:
        """
        Draw visible bones (and optionally active keypoints) on a frame.

        Args:
            frame: BGR image (modified in-place)
            renderer: Initialized SkeletonRenderer
            keypoints: Optional KeypointSet; active keypoints are drawn as circles
            keypoint_radius: Circle radius in pixels (0 disables keypoints)

        Returns:
            Modified frame
        """
        h, w = frame.shape[:2]

        for segment in renderer.visible_segments():
            start_pt = OverlayVisualizer.to_image_point(segment.start, h)
            end_pt = OverlayVisualizer.to_image_point(segment.end, h)
            if start_pt is None or end_pt is None:
                continue  # Skip corrupted endpoints

            thickness = max(1, int(round(segment.width)))
            cv2.line(frame, start_pt, end_pt, segment.color, thickness, cv2.LINE_AA)

        if keypoints is not None and keypoint_radius > 0:
            for kp in keypoints:
                if not kp.active:
                    continue
                pt = OverlayVisualizer.to_image_point(kp.position, h)
                if pt is None:
                    continue
                if 0 <= pt[0] < w and 0 <= pt[1] < h:
                    cv2.circle(frame, pt, keypoint_radius, KEYPOINT_COLOR, -1, cv2.LINE_AA)

        return frame

    @staticmethod
    def render_snapshot(renderer: SkeletonRenderer, keypoints=None,
                        frame_size: Tuple[int, int] = (640, 480),
                        figsize: Tuple[int, int] = (6, 6), dpi: int = 100,
                        title: str = 'Pose Overlay') -> Image.Image:
        """
        Plot the skeleton in frame space with matplotlib.

        Args:
            renderer: Initialized SkeletonRenderer
            keypoints: Optional KeypointSet; active keypoints are scattered
            frame_size: (width, height) used as axis limits
            figsize: Figure size in inches
            dpi: Figure DPI

        Returns:
            PIL.Image: RGB image of the plot
        """
        frame_width, frame_height = frame_size

        fig = plt.figure(figsize=figsize, dpi=dpi)
        ax = fig.add_subplot(111)

        for segment in renderer.visible_segments():
            ax.plot([segment.start[0], segment.end[0]],
                    [segment.start[1], segment.end[1]],
                    color=_bgr_to_rgb_unit(segment.color), linewidth=segment.width)

        if keypoints is not None:
            active = [kp for kp in keypoints if kp.active]
            if active:
                positions = np.stack([kp.position for kp in active])
                ax.scatter(positions[:, 0], positions[:, 1],
                           c=[_bgr_to_rgb_unit(KEYPOINT_COLOR)], s=30, zorder=3)

        # Frame space is bottom-up, matching matplotlib's default y direction
        ax.set_xlim([0, frame_width])
        ax.set_ylim([0, frame_height])
        ax.set_aspect('equal')
        ax.set_title(f"{title} | Bones: {len(renderer.visible_segments())}/{len(renderer.segments)}",
                     fontsize=10)
        fig.tight_layout(pad=0.1)

        canvas = FigureCanvasAgg(fig)
        canvas.draw()
        img_array = np.asarray(canvas.buffer_rgba())[:, :, :3].copy()

        plt.close(fig)
        return Image.fromarray(img_array)
