"""Factory classes for creating configured service instances."""

import logging
from typing import Any, Optional, Tuple

from .codec import PillowImageCodec
from .exif import ExifCodec
from .logging_config import get_logger
from .models import IntakeConfig
from .observability import (
    MetricsCollector,
    ObservabilityConfig,
    create_logger,
    create_metrics_collector,
    format_message,
)
from .optimizer import ImageOptimizer
from .protocols import ImageCodecProtocol, LoggerProtocol
from .services import BatchOrchestrator, ImageProcessingService
from .validator import FileValidator


class LoggerAdapter:
    """Adapter to make standard logger compatible with LoggerProtocol."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @staticmethod
    def _format(message: str, context: Any = None, **kwargs: Any) -> str:
        return format_message(message, context, **kwargs)

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        self._logger.debug(self._format(message, context, **kwargs))

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        self._logger.info(self._format(message, context, **kwargs))

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        self._logger.warning(self._format(message, context, **kwargs))

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        self._logger.error(self._format(message, context, **kwargs))


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str = "pipeline", debug: bool = False) -> LoggerProtocol:
        """Create a configured logger instance."""
        logger = get_logger(name)
        if debug:
            logger.setLevel(logging.DEBUG)
        return LoggerAdapter(logger)


class PipelineFactory:
    """Factory for creating the complete intake pipeline."""

    @staticmethod
    def create_orchestrator(
        config: Optional[IntakeConfig] = None,
        logger: Optional[LoggerProtocol] = None,
        codec: Optional[ImageCodecProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> BatchOrchestrator:
        """Create a fully configured batch orchestrator."""
        config = config or IntakeConfig()

        if logger is None:
            logger = LoggerFactory.create_logger("pipeline", debug=config.debug)

        codec = codec or PillowImageCodec()
        processing_service = ImageProcessingService(
            config=config,
            logger=logger,
            validator=FileValidator(config.max_file_size),
            exif_codec=ExifCodec(),
            codec=codec,
            optimizer=ImageOptimizer(codec),
            metrics_collector=metrics_collector,
        )

        return BatchOrchestrator(
            processing_service=processing_service,
            logger=logger,
            config=config,
        )

    @staticmethod
    def create_observed_orchestrator(
        config: Optional[IntakeConfig] = None,
        observability: Optional[ObservabilityConfig] = None,
    ) -> Tuple[BatchOrchestrator, Optional[MetricsCollector]]:
        """
        Create an orchestrator that logs through a StructuredLogger and,
        when enabled, records per-stage timings.

        Returns:
            The orchestrator and its metrics collector (None when disabled).
        """
        observability = observability or ObservabilityConfig()
        logger = create_logger(
            f"{observability.component_name}.pipeline", observability
        )
        metrics_collector = create_metrics_collector(observability)
        orchestrator = PipelineFactory.create_orchestrator(
            config=config, logger=logger, metrics_collector=metrics_collector
        )
        return orchestrator, metrics_collector
