"""
Periodic Logger - collapses per-frame timing logs into periodic summaries.

The pipeline runs once per frame; logging every frame floods the output.
This utility counts frames and skips, aggregates timing (min/max/avg) and
custom metrics, and emits one summary line every N frames.
"""

import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field


@dataclass
class PeriodicStats:
    """Statistics aggregated between periodic log outputs."""
    count: int = 0  # Frames processed
    skipped: int = 0  # Frames skipped (missing input)
    total_time: float = 0.0  # ms
    min_time: float = float('inf')  # ms
    max_time: float = 0.0  # ms
    custom_metrics: Dict[str, List[Any]] = field(default_factory=dict)

    def avg_time(self) -> float:
        """Average time in ms."""
        return self.total_time / self.count if self.count > 0 else 0.0

    def reset(self):
        self.count = 0
        self.skipped = 0
        self.total_time = 0.0
        self.min_time = float('inf')
        self.max_time = 0.0
        self.custom_metrics.clear()


class PeriodicLogger:
    """
    Logs aggregated frame metrics at periodic intervals.

    Usage:
        periodic = PeriodicLogger('Pipeline', period_frames=30)
        for frame in frames:
            start = time.perf_counter()
            # ... processing ...
            elapsed_ms = (time.perf_counter() - start) * 1000
            periodic.record_frame(elapsed_ms, active_keypoints=12)
            periodic.log_if_periodic()
    """

    def __init__(self, component_name: str, period_frames: int = 30,
                 logger_obj: Optional[logging.Logger] = None):
        """
        Args:
            component_name: Prefix for summary lines (e.g. "Pipeline")
            period_frames: Frames (processed or skipped) between summaries
            logger_obj: Logger to write to (default: logger named after component)
        """
        if period_frames < 1:
            raise ValueError(f"period_frames must be >= 1, got {period_frames}")
        self.component_name = component_name
        self.period_frames = period_frames
        self.logger = logger_obj or logging.getLogger(component_name)

        self.stats = PeriodicStats()
        self.frame_counter = 0

    def record_frame(self, elapsed_ms: float = 0.0, **kwargs):
        """
        Record a processed frame.

        Args:
            elapsed_ms: Processing time in milliseconds
            **kwargs: Numeric metrics to average over the period
        """
        self.frame_counter += 1
        self.stats.count += 1

        if elapsed_ms > 0:
            self.stats.total_time += elapsed_ms
            self.stats.min_time = min(self.stats.min_time, elapsed_ms)
            self.stats.max_time = max(self.stats.max_time, elapsed_ms)

        for key, value in kwargs.items():
            self.stats.custom_metrics.setdefault(key, []).append(value)

    def record_skip(self):
        """Record a frame skipped because its input was missing."""
        self.frame_counter += 1
        self.stats.skipped += 1

    def should_log(self) -> bool:
        return self.frame_counter > 0 and self.frame_counter % self.period_frames == 0

    def get_summary(self) -> str:
        """Get formatted summary string."""
        min_time = self.stats.min_time if self.stats.count else 0.0
        summary = (
            f"[{self.component_name}] "
            f"Processed {self.stats.count} frames | "
            f"Time: {self.stats.avg_time():.2f}ms (min={min_time:.2f}, max={self.stats.max_time:.2f})"
        )

        if self.stats.skipped > 0:
            summary += f" | Skipped: {self.stats.skipped}"

        for key, values in self.stats.custom_metrics.items():
            if values and isinstance(values[0], (int, float)):
                summary += f" | {key}: {sum(values) / len(values):.2f}"
            elif values:
                summary += f" | {key}: {values[-1]}"

        return summary

    def log_if_periodic(self, extra_info: str = "") -> bool:
        """Log and reset if the period is reached. Returns True if logged."""
        if not self.should_log():
            return False
        self.force_log(extra_info)
        return True

    def force_log(self, extra_info: str = ""):
        """Log immediately regardless of period."""
        summary = self.get_summary()
        if extra_info:
            summary += f" | {extra_info}"
        self.logger.info(summary)
        self.stats.reset()
