"""Per-item processing and batch orchestration for the intake pipeline."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .codec import CodecResult, PillowImageCodec
from .error_handling import BatchOperationContextManager
from .exceptions import BatchSizeExceeded, ImageProcessingError, item_error_boundary
from .exif import ExifCodec
from .models import (
    EncodedResult,
    IntakeConfig,
    ItemOutcome,
    BatchReport,
    MemoryByteSource,
    PixelSurface,
    ProgressEvent,
    ProgressPhase,
    ValidationOutcome,
)
from .observability import LogContext, MetricsCollector, timed_stage
from .optimizer import ImageOptimizer, format_for_source
from .protocols import (
    ByteSourceProtocol,
    ImageCodecProtocol,
    LoggerProtocol,
    ProgressCallback,
)
from .validator import FileValidator

# A stage takes the previous stage's value and returns a CodecResult.
Stage = Tuple[str, Optional[ProgressPhase], Callable[[Any], CodecResult]]


@dataclass
class ItemContext:
    """Bookkeeping for one item while it moves through the stages."""

    source: ByteSourceProtocol
    index: int
    total: int
    on_progress: Optional[ProgressCallback] = None
    start_time: float = field(default_factory=time.time)
    log_context: LogContext = field(default_factory=LogContext)

    @property
    def name(self) -> str:
        return str(getattr(self.source, "name", "") or f"item-{self.index}")


class ImageProcessingService:
    """Runs one byte source through validate → decode → orient → optimize."""

    def __init__(
        self,
        config: IntakeConfig,
        logger: LoggerProtocol,
        validator: Optional[FileValidator] = None,
        exif_codec: Optional[ExifCodec] = None,
        codec: Optional[ImageCodecProtocol] = None,
        optimizer: Optional[ImageOptimizer] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._config = config
        self._logger = logger
        self._validator = validator or FileValidator(config.max_file_size)
        self._exif = exif_codec or ExifCodec()
        self._codec = codec or PillowImageCodec()
        self._optimizer = optimizer or ImageOptimizer(self._codec)
        self._metrics_collector = metrics_collector

    # -- progress and outcomes -------------------------------------------------

    def _notify(self, ctx: ItemContext, phase: ProgressPhase) -> None:
        if ctx.on_progress is None:
            return
        event = ProgressEvent(index=ctx.index, total=ctx.total, phase=phase, name=ctx.name)
        try:
            ctx.on_progress(event)
        except Exception as e:  # noqa: BLE001
            self._logger.warning(
                f"Progress callback raised for {phase.value}: {e}", ctx.log_context
            )

    def _failure(
        self,
        ctx: ItemContext,
        error: str,
        validation: Optional[ValidationOutcome] = None,
    ) -> ItemOutcome:
        self._notify(ctx, ProgressPhase.ERROR)
        self._logger.warning(
            f"Item {ctx.index + 1}/{ctx.total} failed: {error}",
            ctx.log_context.with_metadata(error=error),
        )
        return ItemOutcome(
            index=ctx.index,
            name=ctx.name,
            source=ctx.source,
            success=False,
            error=error,
            validation=validation,
            processing_time=time.time() - ctx.start_time,
        )

    def _success(
        self, ctx: ItemContext, validation: ValidationOutcome, encoded: EncodedResult
    ) -> ItemOutcome:
        self._notify(ctx, ProgressPhase.COMPLETE)
        outcome = ItemOutcome(
            index=ctx.index,
            name=ctx.name,
            source=ctx.source,
            success=True,
            validation=validation,
            encoded=encoded,
            processing_time=time.time() - ctx.start_time,
        )
        self._logger.info(
            "Processed image",
            ctx.log_context,
            width=encoded.width,
            height=encoded.height,
            original_size=encoded.original_size,
            encoded_size=encoded.encoded_size,
            processing_time_ms=round(outcome.processing_time * 1000, 1),
        )
        return outcome

    # -- stages ---------------------------------------------------------------

    def _start(
        self,
        source: ByteSourceProtocol,
        index: int,
        total: int,
        on_progress: Optional[ProgressCallback],
    ) -> ItemContext:
        ctx = ItemContext(source=source, index=index, total=total, on_progress=on_progress)
        ctx.log_context = LogContext.for_item(index, ctx.name)
        return ctx

    def _validate(self, ctx: ItemContext) -> ValidationOutcome:
        self._notify(ctx, ProgressPhase.VALIDATING)
        with timed_stage("validate", self._metrics_collector, item=ctx.name):
            return self._validator.validate(ctx.source)

    def _stages(self, ctx: ItemContext, raw: bytes) -> List[Stage]:
        source = ctx.source
        output_format = format_for_source(source)

        def decode(data: bytes) -> CodecResult[PixelSurface]:
            return self._codec.decode(data)

        def orient(surface: PixelSurface) -> CodecResult[PixelSurface]:
            metadata = self._exif.read_orientation(raw)
            if metadata is None or metadata.orientation == 1:
                return CodecResult.success(surface)
            self._logger.debug(
                f"Correcting orientation {metadata.orientation}", ctx.log_context
            )
            try:
                return CodecResult.success(
                    self._exif.correct_orientation(surface, metadata.orientation)
                )
            except ImageProcessingError as exc:
                return CodecResult.failure(exc)

        def reencode(surface: PixelSurface) -> CodecResult[bytes]:
            return self._codec.encode(
                surface, output_format, self._config.intermediate_quality
            )

        def optimize(data: bytes) -> CodecResult[EncodedResult]:
            intermediate = MemoryByteSource(
                name=ctx.name, data=data, content_type=output_format.mime_type
            )
            try:
                encoded = self._optimizer.optimize(
                    intermediate, self._config.optimization_options()
                )
            except ImageProcessingError as exc:
                return CodecResult.failure(exc)
            # Report against what the caller handed us, not the intermediate.
            return CodecResult.success(
                encoded.model_copy(update={"original_size": len(raw)})
            )

        return [
            ("decode", ProgressPhase.PROCESSING, decode),
            ("orient", None, orient),
            ("reencode", None, reencode),
            ("optimize", ProgressPhase.OPTIMIZING, optimize),
        ]

    def _run_stage(self, ctx: ItemContext, name: str, step: Callable, value: Any) -> CodecResult:
        with timed_stage(name, self._metrics_collector, item=ctx.name):
            return step(value)

    # -- entry points ----------------------------------------------------------

    def process_item(
        self,
        source: ByteSourceProtocol,
        index: int = 0,
        total: int = 1,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ItemOutcome:
        """Process a single source; failures come back as outcomes, never raised."""
        ctx = self._start(source, index, total, on_progress)
        validation = self._validate(ctx)
        if not validation.valid:
            return self._failure(ctx, validation.error or "Invalid file", validation)

        try:
            with item_error_boundary():
                raw = source.read_bytes()
                value: Any = raw
                for name, phase, step in self._stages(ctx, raw):
                    if phase is not None:
                        self._notify(ctx, phase)
                    result = self._run_stage(ctx, name, step, value)
                    if not result.ok:
                        return self._failure(ctx, str(result.error), validation)
                    value = result.value
        except ImageProcessingError as exc:
            return self._failure(ctx, str(exc), validation)

        return self._success(ctx, validation, value)

    async def process_item_async(
        self,
        source: ByteSourceProtocol,
        index: int = 0,
        total: int = 1,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ItemOutcome:
        """Like ``process_item`` but yields to the event loop between stages."""
        ctx = self._start(source, index, total, on_progress)
        validation = self._validate(ctx)
        if not validation.valid:
            return self._failure(ctx, validation.error or "Invalid file", validation)

        try:
            with item_error_boundary():
                raw = await asyncio.to_thread(source.read_bytes)
                value: Any = raw
                for name, phase, step in self._stages(ctx, raw):
                    if phase is not None:
                        self._notify(ctx, phase)
                    result = await asyncio.to_thread(
                        self._run_stage, ctx, name, step, value
                    )
                    if not result.ok:
                        return self._failure(ctx, str(result.error), validation)
                    value = result.value
        except ImageProcessingError as exc:
            return self._failure(ctx, str(exc), validation)

        return self._success(ctx, validation, value)


class BatchOrchestrator:
    """Runs a batch of sources strictly in order and aggregates a report."""

    def __init__(
        self,
        processing_service: ImageProcessingService,
        logger: LoggerProtocol,
        config: Optional[IntakeConfig] = None,
    ):
        self._processing_service = processing_service
        self._logger = logger
        self._config = config or IntakeConfig()

    def _check_batch_size(self, sources: Sequence[ByteSourceProtocol]) -> None:
        if len(sources) > self._config.max_batch_size:
            self._logger.warning(
                f"Rejecting batch of {len(sources)} files "
                f"(limit {self._config.max_batch_size})"
            )
            raise BatchSizeExceeded(len(sources), self._config.max_batch_size)

    def _report(self, outcomes: List[ItemOutcome], start_time: float) -> BatchReport:
        report = BatchReport.from_outcomes(outcomes)
        self._logger.info(
            f"Batch finished: {report.success_count} succeeded, "
            f"{report.failure_count} failed of {report.total_count} "
            f"in {time.time() - start_time:.2f}s"
        )
        return report

    def process(
        self,
        sources: Sequence[ByteSourceProtocol],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchReport:
        """
        Process a batch of sources in input order.

        Raises:
            BatchSizeExceeded: more sources than the configured maximum; no
                item is touched in that case.
        """
        sources = list(sources)
        self._check_batch_size(sources)
        start_time = time.time()
        total = len(sources)
        outcomes: List[ItemOutcome] = []

        with BatchOperationContextManager(
            operation_name=f"intake batch of {total}", logger=self._logger
        ) as batch:
            for index, source in enumerate(sources):
                outcome = self._processing_service.process_item(
                    source, index, total, on_progress
                )
                if not outcome.success:
                    batch.add_error(outcome.error or "Unknown error", outcome.name)
                outcomes.append(outcome)

        return self._report(outcomes, start_time)

    async def process_async(
        self,
        sources: Sequence[ByteSourceProtocol],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchReport:
        """Async variant of ``process``; items still run one after another."""
        sources = list(sources)
        self._check_batch_size(sources)
        start_time = time.time()
        total = len(sources)
        outcomes: List[ItemOutcome] = []

        with BatchOperationContextManager(
            operation_name=f"intake batch of {total}", logger=self._logger
        ) as batch:
            for index, source in enumerate(sources):
                outcome = await self._processing_service.process_item_async(
                    source, index, total, on_progress
                )
                if not outcome.success:
                    batch.add_error(outcome.error or "Unknown error", outcome.name)
                outcomes.append(outcome)

        return self._report(outcomes, start_time)
