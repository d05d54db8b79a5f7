"""
Configuration Validation Module for the pose overlay pipeline.
Provides validation and detailed error reporting for configuration issues.
"""

from typing import Dict, List, Tuple, Any
import logging

logger = logging.getLogger('ConfigValidator')

SKELETON_GROUPS = ('face', 'torso', 'arms', 'legs')
HEATMAP_ACTIVATIONS = ('none', 'sigmoid')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigValidationError(Exception):
    """Custom exception for configuration validation errors."""
    def __init__(self, message: str, missing_keys: List[str] = None, invalid_values: List[str] = None):
        super().__init__(message)
        self.missing_keys = missing_keys or []
        self.invalid_values = invalid_values or []


class ConfigValidator:
    """
    Configuration validator with detailed error reporting.

    Errors make the configuration unusable; warnings flag values that work
    but are probably unintended.
    """

    REQUIRED_STRUCTURE = {
        'model': ['num_keypoints', 'input_width', 'input_height'],
        'keypoints': ['min_confidence'],
        'skeleton': ['line_width'],
    }

    def __init__(self):
        self.validation_errors = []
        self.validation_warnings = []

    def validate_configuration(self, config: Dict[str, Any]) -> Tuple[bool, List[str], List[str]]:
        """
        Validate a full configuration dict.

        Returns:
            Tuple[bool, List[str], List[str]]: (is_valid, errors, warnings)
        """
        self.validation_errors = []
        self.validation_warnings = []

        logger.debug("Starting configuration validation...")

        self._validate_structure(config)
        self._validate_model(config)
        self._validate_keypoints(config)
        self._validate_skeleton(config)
        self._validate_logging(config)

        is_valid = len(self.validation_errors) == 0

        if is_valid:
            logger.debug("Configuration validation passed")
        else:
            logger.error(f"Configuration validation failed with {len(self.validation_errors)} errors")

        return is_valid, self.validation_errors, self.validation_warnings

    def _validate_structure(self, config: Dict[str, Any]):
        """Validate basic configuration structure."""
        for section, required_keys in self.REQUIRED_STRUCTURE.items():
            if section not in config:
                self.validation_errors.append(
                    f"Missing required configuration section: '{section}'"
                )
                continue

            section_config = config[section]
            if not isinstance(section_config, dict):
                self.validation_errors.append(
                    f"Configuration section '{section}' must be a dictionary, got {type(section_config).__name__}"
                )
                continue

            for key in required_keys:
                if key not in section_config:
                    self.validation_errors.append(
                        f"Missing required key '{key}' in section '{section}'"
                    )

    def _validate_model(self, config: Dict[str, Any]):
        model = self._section(config, 'model')

        num_keypoints = model.get('num_keypoints')
        if num_keypoints is not None and num_keypoints != 17:
            self.validation_errors.append(
                f"Invalid num_keypoints: {num_keypoints}. The COCO skeleton requires exactly 17."
            )

        for key in ('input_width', 'input_height'):
            value = model.get(key)
            if value is None:
                continue
            if not self._is_int(value) or value < 2:
                self.validation_errors.append(
                    f"Invalid '{key}' in model: {value}. Must be integer >= 2."
                )

        width, height = model.get('input_width'), model.get('input_height')
        if self._is_int(width) and self._is_int(height) and width != height:
            self.validation_warnings.append(
                f"Non-square model input {width}x{height}; the aspect correction assumes a square resize"
            )

        activation = model.get('heatmap_activation', 'none')
        if activation not in HEATMAP_ACTIVATIONS:
            self.validation_errors.append(
                f"Invalid heatmap_activation: {activation!r}. Must be one of {HEATMAP_ACTIVATIONS}."
            )

    def _validate_keypoints(self, config: Dict[str, Any]):
        keypoints = self._section(config, 'keypoints')

        min_confidence = keypoints.get('min_confidence')
        if min_confidence is not None:
            if not self._is_number(min_confidence) or not 0.0 <= min_confidence <= 1.0:
                self.validation_errors.append(
                    f"Invalid min_confidence: {min_confidence}. Must be a number between 0.0 and 1.0."
                )
            elif min_confidence == 0.0:
                self.validation_warnings.append(
                    "min_confidence is 0.0; every keypoint will always be active"
                )
            elif min_confidence == 1.0:
                self.validation_warnings.append(
                    "min_confidence is 1.0; keypoints will almost never be active"
                )

        depth = keypoints.get('depth', -1.0)
        if not self._is_number(depth):
            self.validation_errors.append(
                f"Invalid depth: {depth!r}. Must be a number."
            )

    def _validate_skeleton(self, config: Dict[str, Any]):
        skeleton = self._section(config, 'skeleton')

        line_width = skeleton.get('line_width')
        if line_width is not None and (not self._is_number(line_width) or line_width <= 0):
            self.validation_errors.append(
                f"Invalid line_width: {line_width}. Must be a positive number."
            )

        for group, width in (skeleton.get('group_line_widths') or {}).items():
            if group not in SKELETON_GROUPS:
                self.validation_warnings.append(
                    f"Unknown skeleton group '{group}' in group_line_widths (ignored)"
                )
            elif not self._is_number(width) or width <= 0:
                self.validation_errors.append(
                    f"Invalid line width for group '{group}': {width}. Must be a positive number."
                )

        for group, color in (skeleton.get('group_colors') or {}).items():
            if group not in SKELETON_GROUPS:
                self.validation_warnings.append(
                    f"Unknown skeleton group '{group}' in group_colors (ignored)"
                )
                continue
            if (not isinstance(color, (list, tuple)) or len(color) != 3 or
                    not all(self._is_int(c) and 0 <= c <= 255 for c in color)):
                self.validation_errors.append(
                    f"Invalid color for group '{group}': {color}. Must be 3 integers in [0, 255] (BGR)."
                )

    def _validate_logging(self, config: Dict[str, Any]):
        log_config = self._section(config, 'logging')

        level = log_config.get('level', 'INFO')
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            self.validation_errors.append(
                f"Invalid logging level: {level!r}. Must be one of {LOG_LEVELS}."
            )

        period = log_config.get('period_frames', 30)
        if not self._is_int(period) or period < 1:
            self.validation_errors.append(
                f"Invalid period_frames: {period}. Must be positive integer."
            )

    def _section(self, config: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = config.get(name, {})
        return section if isinstance(section, dict) else {}

    @staticmethod
    def _is_int(value) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    @staticmethod
    def _is_number(value) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def create_diagnostic_report(self, config: Dict[str, Any]) -> str:
        """Create a diagnostic report of the last validation run."""
        report = []
        report.append("=" * 60)
        report.append("Pose Overlay Configuration Diagnostic Report")
        report.append("=" * 60)
        report.append("")

        if self.validation_errors:
            report.append("ERRORS:")
            for i, error in enumerate(self.validation_errors, 1):
                report.append(f"  {i}. {error}")
            report.append("")

        if self.validation_warnings:
            report.append("WARNINGS:")
            for i, warning in enumerate(self.validation_warnings, 1):
                report.append(f"  {i}. {warning}")
            report.append("")

        model = self._section(config, 'model')
        keypoints = self._section(config, 'keypoints')
        skeleton = self._section(config, 'skeleton')
        report.append("Configuration Summary:")
        report.append(f"  Model input: {model.get('input_width', 'Unknown')}x{model.get('input_height', 'Unknown')}")
        report.append(f"  Keypoints: {model.get('num_keypoints', 'Unknown')}")
        report.append(f"  Heatmap activation: {model.get('heatmap_activation', 'none')}")
        report.append(f"  Min confidence: {keypoints.get('min_confidence', 'Unknown')}")
        report.append(f"  Line width: {skeleton.get('line_width', 'Unknown')}")

        return "\n".join(report)


def validate_config_and_report(config: Dict[str, Any]) -> Tuple[bool, str]:
    """
    Convenience function to validate configuration and generate report.

    Returns:
        Tuple[bool, str]: (is_valid, diagnostic_report)
    """
    validator = ConfigValidator()
    is_valid, errors, warnings = validator.validate_configuration(config)
    report = validator.create_diagnostic_report(config)
    return is_valid, report
