"""
Keypoint Decoder - heatmap/offset tensors to 2D keypoints.

Decodes single-person bottom-up pose network outputs into per-joint
(x, y, confidence) rows in source frame coordinates.

Pipeline per joint k:
    1. Argmax over heatmap channel k (raster order, first maximum wins)
    2. Offset lookup at the peak cell (y from channel k, x from channel k + K)
    3. Stride recovery from input/heatmap heights, rounded down to a multiple of 8
    4. Model space:  x = gx * stride + dx,  y = input_h - (gy * stride + dy)
    5. Frame space:  scale by min(frame) / min(input), then stretch the long
       axis by max(frame) / min(frame) to undo the square resize

Model space is bottom-up (y grows upward), matching the display layer.
"""

from typing import Optional, Tuple
import logging

import numpy as np

from ..visualization.skeleton_definitions import NUM_KEYPOINTS

logger = logging.getLogger(__name__)

# Network downsampling factors are multiples of this value
STRIDE_MULTIPLE = 8

HEATMAP_ACTIVATIONS = ('none', 'sigmoid')


class TensorShapeError(ValueError):
    """Raised when heatmap/offset tensors do not match each other or the model."""


def heatmaps_from_logits(logits: np.ndarray) -> np.ndarray:
    """
    Convert raw heatmap logits to probabilities with a sigmoid.

    Uses the tanh form, which does not overflow for large negative logits.
    """
    logits = np.asarray(logits, dtype=np.float64)
    return 0.5 * (1.0 + np.tanh(0.5 * logits))


def _squeeze_batch(tensor: np.ndarray, name: str) -> np.ndarray:
    """Accept (1, H, W, C) or (H, W, C) and return (H, W, C)."""
    arr = np.asarray(tensor)
    if arr.ndim == 4:
        if arr.shape[0] != 1:
            raise TensorShapeError(
                f"{name} batch size must be 1, got shape {arr.shape}"
            )
        arr = arr[0]
    if arr.ndim != 3:
        raise TensorShapeError(
            f"{name} must have shape (1, H, W, C) or (H, W, C), got {arr.shape}"
        )
    return arr


def validate_tensors(heatmaps: np.ndarray, offsets: np.ndarray,
                     num_keypoints: int = NUM_KEYPOINTS) -> Tuple[np.ndarray, np.ndarray]:
    """
    Check heatmap/offset shapes against each other and the keypoint count.

    Returns:
        tuple: (heatmaps, offsets) as (H, W, K) and (H, W, 2K) arrays

    Raises:
        TensorShapeError: On any rank, spatial or channel mismatch
    """
    heatmaps = _squeeze_batch(heatmaps, 'heatmaps')
    offsets = _squeeze_batch(offsets, 'offsets')

    if heatmaps.shape[:2] != offsets.shape[:2]:
        raise TensorShapeError(
            f"Heatmap grid {heatmaps.shape[:2]} does not match offset grid {offsets.shape[:2]}"
        )
    if heatmaps.shape[2] != num_keypoints:
        raise TensorShapeError(
            f"Heatmaps have {heatmaps.shape[2]} channels, expected {num_keypoints}"
        )
    if offsets.shape[2] != 2 * num_keypoints:
        raise TensorShapeError(
            f"Offsets have {offsets.shape[2]} channels, expected {2 * num_keypoints}"
        )
    if heatmaps.shape[0] < 2 or heatmaps.shape[1] < 1:
        raise TensorShapeError(
            f"Heatmap grid {heatmaps.shape[:2]} is too small (need at least 2 rows)"
        )
    return heatmaps, offsets


def compute_stride(input_height: int, heatmap_height: int) -> int:
    """
    Recover the network stride from the input and heatmap heights.

    Integer division, then rounded down to a multiple of 8.

    Example:
        >>> compute_stride(481, 61)
        8
    """
    if heatmap_height < 2:
        raise TensorShapeError(f"Heatmap height must be >= 2, got {heatmap_height}")
    stride = (int(input_height) - 1) // (int(heatmap_height) - 1)
    stride -= stride % STRIDE_MULTIPLE
    return stride


def rescale_factors(frame_size: Tuple[int, int],
                    input_size: Tuple[int, int]) -> Tuple[float, float, bool]:
    """
    Scale factors from model input space to frame space.

    Args:
        frame_size: (width, height) of the source frame
        input_size: (height, width) of the model input

    Returns:
        tuple: (scale, aspect_scale, stretch_x) where stretch_x is True when
               the frame is wider than tall (aspect applies to x, else to y)
    """
    frame_width, frame_height = frame_size
    input_height, input_width = input_size
    if min(frame_width, frame_height) <= 0:
        raise TensorShapeError(f"Frame size must be positive, got {frame_size}")
    if min(input_width, input_height) <= 0:
        raise TensorShapeError(f"Input size must be positive, got {input_size}")

    min_dim = min(frame_width, frame_height)
    max_dim = max(frame_width, frame_height)

    scale = float(min_dim) / float(min(input_width, input_height))
    aspect_scale = float(max_dim) / float(min_dim)
    return scale, aspect_scale, frame_width > frame_height


class KeypointDecoder:
    """
    Decodes heatmap + offset tensors into (x, y, confidence) per joint.

    Args:
        input_height: Model input height in pixels
        input_width: Model input width in pixels
        num_keypoints: Heatmap channel count
        heatmap_activation: 'none' if heatmaps are already probabilities,
                            'sigmoid' to apply a sigmoid to raw logits
    """

    def __init__(self, input_height: int = 480, input_width: int = 480,
                 num_keypoints: int = NUM_KEYPOINTS, heatmap_activation: str = 'none'):
        if heatmap_activation not in HEATMAP_ACTIVATIONS:
            raise ValueError(
                f"Unknown heatmap_activation {heatmap_activation!r}, "
                f"expected one of {HEATMAP_ACTIVATIONS}"
            )
        self.input_height = int(input_height)
        self.input_width = int(input_width)
        self.num_keypoints = int(num_keypoints)
        self.heatmap_activation = heatmap_activation
        self._zero_stride_warned = False

        logger.info(f"[Decoder] Initialized (input={self.input_width}x{self.input_height}, "
                    f"keypoints={self.num_keypoints}, activation={self.heatmap_activation})")

    def locate_keypoints(self, heatmaps: np.ndarray, offsets: np.ndarray):
        """
        Find the heatmap peak and its offset vector for every joint.

        A joint whose heatmap has no positive value keeps grid cell (0, 0),
        zero offsets and confidence 0.

        Returns:
            tuple: (coords, offset_vectors, confidences)
                coords: (K, 2) int array of [grid_x, grid_y]
                offset_vectors: (K, 2) array of [x_offset, y_offset]
                confidences: (K,) peak values
        """
        heatmaps, offsets = validate_tensors(heatmaps, offsets, self.num_keypoints)
        if self.heatmap_activation == 'sigmoid':
            heatmaps = heatmaps_from_logits(heatmaps)

        height, width, num_kps = heatmaps.shape
        flat = heatmaps.reshape(height * width, num_kps).astype(np.float64)
        # NaN cells never win, as with a strict '>' scan
        flat = np.where(np.isnan(flat), -np.inf, flat)

        # argmax returns the first occurrence, i.e. first maximum in raster order
        peak_idx = np.argmax(flat, axis=0)
        joints = np.arange(num_kps)
        peak_values = flat[peak_idx, joints]
        detected = peak_values > 0.0

        grid_y, grid_x = np.divmod(peak_idx, width)
        grid_x = np.where(detected, grid_x, 0)
        grid_y = np.where(detected, grid_y, 0)

        x_offsets = offsets[grid_y, grid_x, joints + num_kps]
        y_offsets = offsets[grid_y, grid_x, joints]
        offset_vectors = np.stack([x_offsets, y_offsets], axis=1).astype(np.float64)
        offset_vectors[~detected] = 0.0

        coords = np.stack([grid_x, grid_y], axis=1).astype(np.int64)
        confidences = np.where(detected, peak_values, 0.0)
        return coords, offset_vectors, confidences

    def decode(self, heatmaps: np.ndarray, offsets: np.ndarray,
               frame_size: Tuple[int, int],
               input_size: Optional[Tuple[int, int]] = None) -> np.ndarray:
        """
        Decode one frame of network output.

        Args:
            heatmaps: (1, H, W, K) or (H, W, K) confidence grid
            offsets: (1, H, W, 2K) or (H, W, 2K) offset grid
            frame_size: (width, height) of the source frame
            input_size: (height, width) of the model input (defaults to configured)

        Returns:
            np.ndarray: (K, 3) array of [x, y, confidence] in frame space

        Raises:
            TensorShapeError: If the tensors are malformed or mismatched
        """
        if input_size is None:
            input_size = (self.input_height, self.input_width)
        input_height = int(input_size[0])

        coords, offset_vectors, confidences = self.locate_keypoints(heatmaps, offsets)

        heatmap_height = _squeeze_batch(heatmaps, 'heatmaps').shape[0]
        stride = compute_stride(input_height, heatmap_height)
        if stride == 0 and not self._zero_stride_warned:
            self._zero_stride_warned = True
            logger.warning(f"[Decoder] Stride rounds to 0 (input_height={input_height}, "
                           f"heatmap_height={heatmap_height}); all joints collapse onto offsets")

        scale, aspect_scale, stretch_x = rescale_factors(frame_size, input_size)

        x_pos = (coords[:, 0] * stride + offset_vectors[:, 0]) * scale
        y_pos = (input_height - (coords[:, 1] * stride + offset_vectors[:, 1])) * scale
        if stretch_x:
            x_pos = x_pos * aspect_scale
        else:
            y_pos = y_pos * aspect_scale

        return np.stack([x_pos, y_pos, confidences], axis=1)
