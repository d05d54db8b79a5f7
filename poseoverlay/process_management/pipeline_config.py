"""
Pipeline configuration dataclass.

Flattens the sectioned JSON config (model / keypoints / skeleton / overlay /
logging) into a single typed object consumed by the pipeline.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List

from .config_validator import ConfigValidationError, ConfigValidator
from .confighandler import ConfigHandler
from ..visualization.skeleton_definitions import BonePair, build_bone_pairs


@dataclass
class PipelineConfig:
    """
    Configuration for the decode/render pipeline.

    Attributes:
        num_keypoints: Heatmap channel count (COCO: 17)
        input_width: Model input width in pixels
        input_height: Model input height in pixels
        heatmap_activation: 'none' or 'sigmoid' (apply sigmoid to raw logits)
        min_confidence: Keypoint activation threshold (0.0-1.0)
        depth: z-coordinate assigned to keypoints and bone endpoints
        line_width: Default bone line width
        group_colors: BGR color per skeleton group
        group_line_widths: Optional per-group width overrides
        keypoint_radius: Overlay circle radius for active keypoints
        draw_keypoints: Draw keypoint circles on the overlay
        log_level: Logging level name
        log_period_frames: Frames between periodic timing summaries
    """
    num_keypoints: int = 17
    input_width: int = 480
    input_height: int = 480
    heatmap_activation: str = 'none'
    min_confidence: float = 0.30
    depth: float = -1.0
    line_width: float = 5.0
    group_colors: Dict[str, List[int]] = field(default_factory=dict)
    group_line_widths: Dict[str, float] = field(default_factory=dict)
    keypoint_radius: int = 4
    draw_keypoints: bool = True
    log_level: str = 'INFO'
    log_period_frames: int = 30

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return asdict(self)

    def bone_pairs(self) -> List[BonePair]:
        """Build the styled bone table for this configuration."""
        return build_bone_pairs(
            group_colors=self.group_colors or None,
            line_width=self.line_width,
            group_line_widths=self.group_line_widths or None
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'PipelineConfig':
        """
        Create PipelineConfig from a sectioned config dictionary.

        Missing sections and keys fall back to the dataclass defaults.
        """
        model = config_dict.get('model', {})
        keypoints = config_dict.get('keypoints', {})
        skeleton = config_dict.get('skeleton', {})
        overlay = config_dict.get('overlay', {})
        log_config = config_dict.get('logging', {})

        flattened = {
            'num_keypoints': model.get('num_keypoints'),
            'input_width': model.get('input_width'),
            'input_height': model.get('input_height'),
            'heatmap_activation': model.get('heatmap_activation'),
            'min_confidence': keypoints.get('min_confidence'),
            'depth': keypoints.get('depth'),
            'line_width': skeleton.get('line_width'),
            'group_colors': skeleton.get('group_colors'),
            'group_line_widths': skeleton.get('group_line_widths'),
            'keypoint_radius': overlay.get('keypoint_radius'),
            'draw_keypoints': overlay.get('draw_keypoints'),
            'log_level': log_config.get('level'),
            'log_period_frames': log_config.get('period_frames'),
        }
        filtered = {k: v for k, v in flattened.items() if v is not None}
        return cls(**filtered)

    @classmethod
    def validated(cls, config_dict: dict) -> 'PipelineConfig':
        """
        Validate a config dictionary and build a PipelineConfig from it.

        Raises:
            ConfigValidationError: Listing every validation error found
        """
        validator = ConfigValidator()
        is_valid, errors, _warnings = validator.validate_configuration(config_dict)
        if not is_valid:
            raise ConfigValidationError(
                "Invalid pipeline configuration:\n  " + "\n  ".join(errors),
                invalid_values=errors
            )
        return cls.from_dict(config_dict)


def load_pipeline_config(config_handler=None) -> 'PipelineConfig':
    """Build a validated PipelineConfig from a ConfigHandler (or defaults)."""
    if config_handler is None:
        return PipelineConfig.validated(ConfigHandler.DEFAULT_CONFIG)
    return PipelineConfig.validated(config_handler.config)
