"""
Pose processing: tensor decoding, keypoint gating and the per-frame pipeline.

Modules:
- keypoint_decoder: heatmap/offset tensors to (x, y, confidence)
- keypoints: Keypoint records and activation threshold
- frame_preprocessor: resize and normalize frames for the network
- pose_pipeline: frame-synchronous decode/render driver
"""
