"""
poseoverlay - heatmap pose decoding and skeleton overlay rendering.
"""

__version__ = "0.1.0"
