"""Structured log formatting and per-stage timing for the intake pipeline."""

import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional

from .logging_config import get_logger


@dataclass(frozen=True)
class LogContext:
    """Correlation data attached to log lines about one item."""

    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_item(
        cls, index: int, name: str, component: str = "image_processing_service"
    ) -> "LogContext":
        """Context for one batch item, keyed by position and start time."""
        return cls(
            correlation_id=f"item_{index}_{int(time.time() * 1000)}",
            operation="process_item",
            component=component,
            metadata={"name": name},
        )

    def with_operation(self, operation: str) -> "LogContext":
        return replace(self, operation=operation)

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        return replace(self, metadata={**self.metadata, **kwargs})


def format_message(
    message: str,
    context: Optional[LogContext] = None,
    with_correlation_id: bool = False,
    **fields: Any,
) -> str:
    """
    Render ``[operation] [correlation] message (key=value, ...)``.

    Context metadata comes first in the field list; keyword fields override
    metadata with the same key.
    """
    if context is not None:
        if with_correlation_id and context.correlation_id:
            message = f"[{context.correlation_id}] {message}"
        if context.operation:
            message = f"[{context.operation}] {message}"
        fields = {**context.metadata, **fields}
    if fields:
        rendered = ", ".join(f"{key}={value}" for key, value in fields.items())
        message = f"{message} ({rendered})"
    return message


class StructuredLogger:
    """LoggerProtocol implementation that prints correlation ids and fields."""

    def __init__(self, name: str, level: int = logging.INFO):
        self._logger = get_logger(name)
        self._logger.setLevel(level)

    def log(
        self, level: int, message: str, context: Optional[LogContext] = None, **fields: Any
    ) -> None:
        self._logger.log(
            level, format_message(message, context, with_correlation_id=True, **fields)
        )

    def debug(self, message: str, context: Optional[LogContext] = None, **fields: Any) -> None:
        self.log(logging.DEBUG, message, context, **fields)

    def info(self, message: str, context: Optional[LogContext] = None, **fields: Any) -> None:
        self.log(logging.INFO, message, context, **fields)

    def warning(self, message: str, context: Optional[LogContext] = None, **fields: Any) -> None:
        self.log(logging.WARNING, message, context, **fields)

    def error(self, message: str, context: Optional[LogContext] = None, **fields: Any) -> None:
        self.log(logging.ERROR, message, context, **fields)


@dataclass(frozen=True)
class StageMetric:
    """Timing of one pipeline stage for one item."""

    stage: str
    item: str
    start_time: float
    end_time: float
    success: bool = True
    error_message: Optional[str] = None

    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time) * 1000


class MetricsCollector:
    """Accumulates StageMetric records; one collector may span many batches."""

    def __init__(self) -> None:
        self._metrics: List[StageMetric] = []

    def record(self, metric: StageMetric) -> None:
        self._metrics.append(metric)

    def get_metrics(
        self, stage: Optional[str] = None, item: Optional[str] = None
    ) -> List[StageMetric]:
        """Recorded metrics in recording order, optionally filtered."""
        return [
            metric
            for metric in self._metrics
            if (stage is None or metric.stage == stage)
            and (item is None or metric.item == item)
        ]

    def stages(self) -> List[str]:
        """Stage names in the order they were first seen."""
        return list(dict.fromkeys(metric.stage for metric in self._metrics))

    def get_summary(self, stage: Optional[str] = None) -> Dict[str, Any]:
        """
        Aggregate timings for one stage (or all of them).

        Returns:
            ``count``, ``failures``, ``success_rate``, ``avg_ms``, ``max_ms``
            and ``total_ms``; an empty dict when nothing was recorded.
        """
        metrics = self.get_metrics(stage)
        if not metrics:
            return {}

        durations = [metric.duration_ms for metric in metrics]
        failures = sum(1 for metric in metrics if not metric.success)
        return {
            "count": len(metrics),
            "failures": failures,
            "success_rate": (len(metrics) - failures) / len(metrics),
            "avg_ms": sum(durations) / len(durations),
            "max_ms": max(durations),
            "total_ms": sum(durations),
        }

    def clear(self) -> None:
        self._metrics.clear()


@contextmanager
def timed_stage(
    stage: str,
    metrics_collector: Optional[MetricsCollector] = None,
    item: str = "",
) -> Iterator[None]:
    """Record how long the wrapped block took, and whether it raised."""
    start_time = time.time()
    error_message = None
    try:
        yield
    except Exception as e:
        error_message = str(e) or type(e).__name__
        raise
    finally:
        if metrics_collector is not None:
            metrics_collector.record(
                StageMetric(
                    stage=stage,
                    item=item,
                    start_time=start_time,
                    end_time=time.time(),
                    success=error_message is None,
                    error_message=error_message,
                )
            )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging level and metrics switch for an observed pipeline."""

    log_level: str = "INFO"
    enable_metrics: bool = True
    component_name: str = "image-intake"


def create_logger(name: str, config: ObservabilityConfig) -> StructuredLogger:
    """Create a structured logger at the configured level (INFO if unknown)."""
    return StructuredLogger(name, getattr(logging, config.log_level.upper(), logging.INFO))


def create_metrics_collector(config: ObservabilityConfig) -> Optional[MetricsCollector]:
    """Create a metrics collector if enabled in config."""
    if config.enable_metrics:
        return MetricsCollector()
    return None
