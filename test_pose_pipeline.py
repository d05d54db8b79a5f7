#!/usr/bin/env python3
"""
End-to-end tests for the decode → gate → render pipeline.
"""

import logging
import sys

import numpy as np
import pytest

from poseoverlay.pose_processing.keypoint_decoder import TensorShapeError
from poseoverlay.pose_processing.keypoints import KeypointSet, create_keypoint_set
from poseoverlay.pose_processing.pose_pipeline import PoseOverlayPipeline
from poseoverlay.process_management.pipeline_config import PipelineConfig
from poseoverlay.utils.periodic_logger import PeriodicLogger

K = 17


def make_outputs(peaks, grid=61):
    """peaks: {joint: (row, col, value)}"""
    heatmaps = np.zeros((1, grid, grid, K), dtype=np.float32)
    offsets = np.zeros((1, grid, grid, 2 * K), dtype=np.float32)
    for joint, (row, col, value) in peaks.items():
        heatmaps[0, row, col, joint] = value
    return heatmaps, offsets


@pytest.fixture
def pipeline():
    return PoseOverlayPipeline(PipelineConfig(input_width=481, input_height=481))


# Keypoint gating

def test_threshold_is_inclusive():
    keypoints = KeypointSet(min_confidence=0.3)
    decoded = np.zeros((K, 3))
    decoded[0, 2] = 0.3
    decoded[1, 2] = 0.2999
    keypoints.update_from_decoded(decoded)

    assert keypoints[0].active
    assert not keypoints[1].active


@pytest.mark.parametrize("threshold", [0.01, 0.3, 0.9])
def test_zero_confidence_is_never_active(threshold):
    keypoints = KeypointSet(min_confidence=threshold)
    keypoints.update_from_decoded(np.zeros((K, 3)))
    assert not keypoints.active_mask().any()


def test_depth_is_applied_to_every_keypoint():
    keypoints = KeypointSet(depth=-1.0)
    decoded = np.column_stack([np.arange(K), np.arange(K) * 2, np.ones(K)])
    keypoints.update_from_decoded(decoded)

    positions = keypoints.positions()
    assert np.array_equal(positions[:, 0], np.arange(K))
    assert np.array_equal(positions[:, 1], np.arange(K) * 2)
    assert np.all(positions[:, 2] == -1.0)


def test_depth_is_set_before_first_decode():
    keypoints = KeypointSet(depth=-2.5)
    assert np.all(keypoints.positions()[:, 2] == -2.5)
    assert np.all(create_keypoint_set().positions()[:, 2] == -1.0)


def test_decoded_shape_must_match():
    with pytest.raises(ValueError):
        KeypointSet().update_from_decoded(np.zeros((16, 3)))


def test_keypoint_lookup_by_name():
    keypoints = create_keypoint_set()
    assert len(keypoints) == K
    assert keypoints.get('left_wrist') is keypoints[9]
    assert keypoints.get('tail') is None


# Pipeline

def test_end_to_end_single_joint(pipeline):
    heatmaps, offsets = make_outputs({0: (30, 30, 0.9)})

    assert pipeline.process_outputs(heatmaps, offsets, (640, 480)) is True

    nose = pipeline.keypoints[0]
    assert nose.active
    assert nose.confidence == pytest.approx(0.9)
    assert nose.position[0] == pytest.approx(240 * (480 / 481) * (640 / 480))
    assert nose.position[1] == pytest.approx(241 * (480 / 481))
    assert nose.position[2] == -1.0

    for kp in list(pipeline.keypoints)[1:]:
        assert not kp.active
        assert kp.confidence == 0.0

    # A single active joint cannot complete any bone
    assert not pipeline.renderer.visibility_mask().any()
    assert pipeline.frames_processed == 1


def test_two_active_joints_show_their_bone(pipeline):
    heatmaps, offsets = make_outputs({0: (30, 30, 0.9), 1: (28, 33, 0.5), 2: (28, 27, 0.1)})

    pipeline.process_outputs(heatmaps, offsets, (640, 480))

    names = [seg.name for seg in pipeline.renderer.visible_segments()]
    assert names == ['nose_to_left_eye']


def test_missing_input_keeps_previous_state(pipeline):
    heatmaps, offsets = make_outputs({5: (20, 20, 0.8), 6: (20, 40, 0.8)})
    pipeline.process_outputs(heatmaps, offsets, (640, 480))

    positions = pipeline.keypoints.positions().copy()
    visibility = pipeline.renderer.visibility_mask().copy()
    decoded = pipeline.last_decoded.copy()

    assert pipeline.process_outputs(None, offsets, (640, 480)) is False
    assert pipeline.process_outputs(heatmaps, None, (640, 480)) is False

    assert pipeline.frames_skipped == 2
    assert pipeline.frames_processed == 1
    assert np.array_equal(pipeline.keypoints.positions(), positions)
    assert np.array_equal(pipeline.renderer.visibility_mask(), visibility)
    assert np.array_equal(pipeline.last_decoded, decoded)


def test_shape_errors_propagate(pipeline):
    heatmaps, offsets = make_outputs({})
    with pytest.raises(TensorShapeError):
        pipeline.process_outputs(heatmaps, offsets[:, :-1], (640, 480))


def test_process_frame_runs_inference_on_preprocessed_input():
    received = []

    def fake_inference(model_input):
        received.append(model_input)
        return make_outputs({11: (20, 10, 0.7), 12: (20, 20, 0.7)}, grid=31)

    pipeline = PoseOverlayPipeline(PipelineConfig(), inference_fn=fake_inference)
    frame = np.full((480, 640, 3), 255, dtype=np.uint8)

    assert pipeline.process_frame(frame) is True

    assert received[0].shape == (480, 480, 3)
    assert received[0].dtype == np.float32
    assert received[0].max() == pytest.approx(1.0)
    assert pipeline.last_decoded.shape == (K, 3)
    assert [seg.name for seg in pipeline.renderer.visible_segments()] == ['left_hip_to_right_hip']


def test_process_frame_without_output_is_skipped():
    pipeline = PoseOverlayPipeline(inference_fn=lambda model_input: None)
    frame = np.zeros((360, 640, 3), dtype=np.uint8)

    assert pipeline.process_frame(frame) is False
    assert pipeline.frames_skipped == 1
    assert pipeline.last_decoded is None


def test_missing_frame_is_skipped_and_keeps_state():
    calls = []

    def fake_inference(model_input):
        calls.append(model_input)
        return make_outputs({11: (20, 10, 0.7), 12: (20, 20, 0.7)}, grid=31)

    pipeline = PoseOverlayPipeline(PipelineConfig(), inference_fn=fake_inference)
    pipeline.process_frame(np.zeros((480, 640, 3), dtype=np.uint8))
    positions = pipeline.keypoints.positions().copy()
    visibility = pipeline.renderer.visibility_mask().copy()

    assert pipeline.process_frame(None) is False

    assert len(calls) == 1
    assert pipeline.frames_skipped == 1
    assert pipeline.frames_processed == 1
    assert np.array_equal(pipeline.keypoints.positions(), positions)
    assert np.array_equal(pipeline.renderer.visibility_mask(), visibility)


def test_process_frame_requires_inference_fn(pipeline):
    with pytest.raises(RuntimeError):
        pipeline.process_frame(np.zeros((480, 640, 3), dtype=np.uint8))


def test_custom_normalization_is_used():
    received = []
    pipeline = PoseOverlayPipeline(
        inference_fn=lambda model_input: received.append(model_input),
        normalize_fn=lambda image: image.astype(np.float32) - 127.5
    )
    pipeline.process_frame(np.zeros((240, 320, 4), dtype=np.uint8))

    assert received[0].shape == (480, 480, 3)
    assert received[0].min() == pytest.approx(-127.5)


def test_periodic_summary_is_logged(caplog):
    pipeline = PoseOverlayPipeline(PipelineConfig(input_width=481, input_height=481,
                                                  log_period_frames=2))
    heatmaps, offsets = make_outputs({0: (30, 30, 0.9)})

    with caplog.at_level(logging.INFO):
        pipeline.process_outputs(heatmaps, offsets, (640, 480))
        pipeline.process_outputs(None, None, (640, 480))

    summaries = [r.getMessage() for r in caplog.records if 'Processed 1 frames' in r.getMessage()]
    assert len(summaries) == 1
    assert 'Skipped: 1' in summaries[0]
    assert 'active_keypoints: 1.00' in summaries[0]


def test_periodic_logger_counts_and_resets():
    periodic = PeriodicLogger('Test', period_frames=3)
    periodic.record_frame(2.0, bones=4)
    periodic.record_frame(4.0, bones=6)
    assert not periodic.log_if_periodic()

    periodic.record_skip()
    summary = periodic.get_summary()
    assert 'Processed 2 frames' in summary
    assert 'Time: 3.00ms (min=2.00, max=4.00)' in summary
    assert 'bones: 5.00' in summary

    assert periodic.log_if_periodic()
    assert periodic.stats.count == 0
    assert periodic.stats.skipped == 0


def test_periodic_logger_rejects_zero_period():
    with pytest.raises(ValueError):
        PeriodicLogger('Test', period_frames=0)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
