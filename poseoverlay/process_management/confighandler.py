import copy
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ConfigHandler:
    """Handles loading and saving configuration for the pose overlay pipeline"""

    DEFAULT_CONFIG = {
        "model": {
            "num_keypoints": 17,
            "input_width": 480,
            "input_height": 480,
            "heatmap_activation": "none"
        },
        "keypoints": {
            "min_confidence": 0.30,
            "depth": -1.0
        },
        "skeleton": {
            "line_width": 5.0,
            "group_colors": {
                "face": [0, 0, 255],
                "torso": [255, 0, 255],
                "arms": [255, 0, 0],
                "legs": [0, 255, 0]
            },
            "group_line_widths": {}
        },
        "overlay": {
            "keypoint_radius": 4,
            "draw_keypoints": True
        },
        "logging": {
            "level": "INFO",
            "period_frames": 30
        }
    }

    def __init__(self, config_file="./poseoverlay_config.json"):
        # Relative paths resolve against the project root
        config_path = Path(config_file)
        if not config_path.is_absolute():
            project_root = Path(__file__).parent.parent.parent
            self.config_file = project_root / config_path
        else:
            self.config_file = config_path
        logger.info(f"[ConfigHandler] Using config file: {self.config_file.absolute()} "
                    f"(exists={self.config_file.exists()})")
        self.config = self.load_config()

    def load_config(self):
        """Load configuration from file or create default"""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    loaded_config = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"[ConfigHandler] Error loading config: {e}; using defaults")
                return copy.deepcopy(self.DEFAULT_CONFIG)
            if not isinstance(loaded_config, dict):
                logger.error(f"[ConfigHandler] Config root must be an object, "
                             f"got {type(loaded_config).__name__}; using defaults")
                return copy.deepcopy(self.DEFAULT_CONFIG)
            return self._merge_configs(self.DEFAULT_CONFIG, loaded_config)

        self.save_config(self.DEFAULT_CONFIG)
        return copy.deepcopy(self.DEFAULT_CONFIG)

    def _merge_configs(self, default, loaded):
        """Recursively merge loaded config with defaults, preserving loaded values"""
        result = copy.deepcopy(loaded)

        for key, value in default.items():
            if key not in result:
                result[key] = copy.deepcopy(value)
            elif isinstance(value, dict) and isinstance(result[key], dict):
                result[key] = self._merge_configs(value, result[key])

        return result

    def save_config(self, config=None):
        """Save configuration to file"""
        if config is None:
            config = self.config
        try:
            with open(self.config_file, 'w') as f:
                json.dump(config, f, indent=4)
            logger.info(f"[ConfigHandler] Configuration saved to {self.config_file}")
        except OSError as e:
            logger.error(f"[ConfigHandler] Error saving config: {e}")

    def get(self, key_path, default=None):
        """Get config value using dot notation (e.g., 'keypoints.min_confidence')"""
        keys = key_path.split('.')
        value = self.config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path, value):
        """Set config value using dot notation"""
        keys = key_path.split('.')
        config = self.config
        for key in keys[:-1]:
            if key not in config:
                config[key] = {}
            config = config[key]
        config[keys[-1]] = value
        self.save_config()
