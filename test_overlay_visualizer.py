#!/usr/bin/env python3
"""
Overlay drawing tests: y-flip, visibility and snapshot rendering.
"""

import sys

import numpy as np
import pytest
from PIL import Image

from poseoverlay.pose_processing.keypoints import KeypointSet
from poseoverlay.visualization.overlay_visualizer import OverlayVisualizer
from poseoverlay.visualization.skeleton_definitions import build_bone_pairs
from poseoverlay.visualization.skeleton_renderer import SkeletonRenderer

LEFT_SHOULDER, RIGHT_SHOULDER = 5, 6


@pytest.fixture
def shoulders():
    """Renderer and keypoints with only the shoulder bone visible, at y=50."""
    keypoints = KeypointSet()
    keypoints[LEFT_SHOULDER].position = np.array([80.0, 50.0, -1.0])
    keypoints[RIGHT_SHOULDER].position = np.array([120.0, 50.0, -1.0])
    keypoints[LEFT_SHOULDER].active = True
    keypoints[RIGHT_SHOULDER].active = True

    renderer = SkeletonRenderer()
    renderer.initialize(build_bone_pairs())
    renderer.update(keypoints)
    return renderer, keypoints


def test_to_image_point_flips_y():
    assert OverlayVisualizer.to_image_point((10.4, 30.0, -1.0), 200) == (10, 170)
    assert OverlayVisualizer.to_image_point((np.nan, 30.0), 200) is None
    assert OverlayVisualizer.to_image_point((1e9, 30.0), 200) is None


def test_bone_is_drawn_at_flipped_row(shoulders):
    renderer, _ = shoulders
    frame = np.zeros((200, 200, 3), dtype=np.uint8)

    OverlayVisualizer.draw_overlay(frame, renderer, keypoint_radius=0)

    assert frame[150, 100].any()
    assert not frame[50, 100].any()
    # Torso color (BGR magenta)
    assert tuple(frame[150, 100]) == (255, 0, 255)


def test_active_keypoints_are_drawn(shoulders):
    renderer, keypoints = shoulders
    frame = np.zeros((200, 200, 3), dtype=np.uint8)

    OverlayVisualizer.draw_overlay(frame, renderer, keypoints, keypoint_radius=4)

    assert tuple(frame[150, 80]) == (0, 255, 255)
    assert tuple(frame[150, 120]) == (0, 255, 255)


def test_nothing_drawn_without_active_keypoints():
    keypoints = KeypointSet()
    renderer = SkeletonRenderer()
    renderer.initialize(build_bone_pairs())
    renderer.update(keypoints)
    frame = np.zeros((120, 160, 3), dtype=np.uint8)

    OverlayVisualizer.draw_overlay(frame, renderer, keypoints)

    assert not frame.any()


def test_non_finite_endpoints_are_skipped(shoulders):
    renderer, keypoints = shoulders
    keypoints[RIGHT_SHOULDER].position = np.array([np.nan, 50.0, -1.0])
    renderer.update(keypoints)
    frame = np.zeros((200, 200, 3), dtype=np.uint8)

    OverlayVisualizer.draw_overlay(frame, renderer, keypoint_radius=0)

    assert not frame.any()


def test_snapshot_is_rgb_image(shoulders):
    renderer, keypoints = shoulders

    image = OverlayVisualizer.render_snapshot(renderer, keypoints, frame_size=(200, 200))

    assert isinstance(image, Image.Image)
    assert image.mode == 'RGB'
    assert image.size == (600, 600)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
