"""
Configuration loading and validation.
"""

from .config_validator import ConfigValidationError, ConfigValidator, validate_config_and_report
from .confighandler import ConfigHandler
from .pipeline_config import PipelineConfig, load_pipeline_config

__all__ = [
    'ConfigValidationError',
    'ConfigValidator',
    'validate_config_and_report',
    'ConfigHandler',
    'PipelineConfig',
    'load_pipeline_config'
]
