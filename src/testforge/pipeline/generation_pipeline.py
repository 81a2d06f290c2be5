"""
Generation pipeline: read -> synthesize -> write.

Three stages run concurrently, each served by `max_parallelism` worker
tasks and connected by bounded asyncio queues. A full queue suspends the
upstream worker (backpressure). When every worker of a stage has exited,
the stage supervisor puts one sentinel per downstream worker, so
completion flows downstream only after upstream work has drained.

Failures are per item: a file that cannot be read, parsed or written is
recorded in the report and its siblings carry on. The run raises
PipelineRunError after every stage has finished if anything failed.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Optional, Union
from uuid import uuid4

import structlog

from testforge.pipeline.file_io import read_source, write_text
from testforge.pipeline.models import PipelineReport, PipelineStage, StageFailure
from testforge.shared.domain.exceptions import GenerationIOError, NameCollisionError, PipelineRunError
from testforge.shared.infrastructure.config import CollisionPolicy, Settings, settings as default_settings
from testforge.shared.infrastructure.logging import get_logger
from testforge.synthesis.engine import SynthesisEngine
from testforge.synthesis.models import GeneratedTestUnit, SynthesisOptions

logger = get_logger(__name__)

_DONE = object()  # end-of-stream sentinel, one per downstream worker

PathLike = Union[str, Path]


class _Run:
    """Mutable state of one pipeline run; only touched from the event loop."""

    def __init__(self, output_directory: Path, parallelism: int, queue_size: int) -> None:
        self.parallelism = parallelism
        self.report = PipelineReport(output_directory=output_directory)
        self.paths: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.sources: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.units: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.claimed: dict[Path, str] = {}  # output file -> source path that wrote it
        self.locks: dict[Path, asyncio.Lock] = {}  # one writer per output file at a time
        self.cancelled = False


class GenerationPipeline:
    """
    Applies the synthesis engine to many files with bounded parallelism.

    Args:
        engine: Synthesis engine (built from settings when omitted)
        settings: Output extension, queue size, collision and fail-fast policy

    Example:
        ```python
        pipeline = GenerationPipeline()
        report = await pipeline.run_all(4, "generated", ["src/Orders.cs", "src/Billing.cs"])
        print(report.written)
        ```
    """

    def __init__(self, engine: Optional[SynthesisEngine] = None, settings: Optional[Settings] = None) -> None:
        self.settings = settings or default_settings
        self.engine = engine or SynthesisEngine(SynthesisOptions.from_settings(self.settings))
        self._run: Optional[_Run] = None

    def cancel(self) -> None:
        """
        Stop admitting new input files.

        Files already read are still synthesized and written; inputs not
        yet read are reported as skipped.
        """
        if self._run is not None and not self._run.cancelled:
            self._run.cancelled = True
            self._run.report.cancelled = True
            logger.info("pipeline_cancel_requested")

    async def run_all(
        self,
        max_parallelism: int,
        output_directory: PathLike,
        input_paths: Iterable[PathLike],
    ) -> PipelineReport:
        """
        Generate and persist test files for every input path.

        Args:
            max_parallelism: Worker count of each stage (>= 1)
            output_directory: Directory receiving `<Class>Tests<ext>` files
            input_paths: C# source files

        Returns:
            PipelineReport of a fully successful (or cancelled) run

        Raises:
            ValueError: If max_parallelism is below 1
            GenerationIOError: If the output directory cannot be created
            PipelineRunError: If any read, synthesis or write failed
        """
        if max_parallelism < 1:
            raise ValueError(f"max_parallelism must be >= 1, got {max_parallelism}")
        if self._run is not None:
            raise RuntimeError("GenerationPipeline.run_all is already running")

        output_dir = Path(output_directory)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GenerationIOError(
                f"Cannot create output directory {output_dir}: {e}",
                path=str(output_dir),
                operation="mkdir",
            ) from e

        paths = [str(p) for p in input_paths]
        queue_size = self.settings.queue_size or 2 * max_parallelism
        run = _Run(output_dir, max_parallelism, queue_size)
        self._run = run
        start_time = time.time()

        with structlog.contextvars.bound_contextvars(pipeline_run=uuid4().hex[:8]):
            logger.info(
                "pipeline_started",
                files=len(paths),
                max_parallelism=max_parallelism,
                output_directory=str(output_dir),
            )
            try:
                await self._execute(run, paths)
            finally:
                self._run = None

            report = run.report
            logger.info(
                "pipeline_completed",
                written=len(report.written),
                failed=len(report.failures),
                skipped=len(report.skipped),
                cancelled=report.cancelled,
                duration_ms=int((time.time() - start_time) * 1000),
            )

        if report.failures:
            raise PipelineRunError(report)
        return report

    async def _execute(self, run: _Run, paths: list[str]) -> None:
        """Start every stage and join them; any crash cancels all workers."""
        n = run.parallelism
        readers = [asyncio.create_task(self._read_worker(run)) for _ in range(n)]
        synthesizers = [asyncio.create_task(self._synthesize_worker(run)) for _ in range(n)]
        writers = [asyncio.create_task(self._write_worker(run)) for _ in range(n)]

        supervisors = [
            asyncio.create_task(self._feed(run, paths)),
            asyncio.create_task(self._supervise(readers, run.sources, n)),
            asyncio.create_task(self._supervise(synthesizers, run.units, n)),
            asyncio.create_task(self._supervise(writers, None, 0)),
        ]
        everything = readers + synthesizers + writers + supervisors

        try:
            await asyncio.gather(*supervisors)
        except BaseException:
            for task in everything:
                task.cancel()
            await asyncio.gather(*everything, return_exceptions=True)
            raise

    async def _feed(self, run: _Run, paths: list[str]) -> None:
        for path in paths:
            if run.cancelled:
                run.report.skipped.append(path)
                continue
            await run.paths.put(path)
        for _ in range(run.parallelism):
            await run.paths.put(_DONE)

    async def _supervise(self, workers: list[asyncio.Task], downstream: Optional[asyncio.Queue], count: int) -> None:
        await asyncio.gather(*workers)
        for _ in range(count):
            await downstream.put(_DONE)

    async def _read_worker(self, run: _Run) -> None:
        while True:
            path = await run.paths.get()
            if path is _DONE:
                return
            if run.cancelled:
                run.report.skipped.append(path)
                continue
            try:
                content = await read_source(path)
            except GenerationIOError as e:
                self._record_failure(run, PipelineStage.READ, path, e)
                continue
            await run.sources.put((path, content))

    async def _synthesize_worker(self, run: _Run) -> None:
        while True:
            item = await run.sources.get()
            if item is _DONE:
                return
            path, content = item
            try:
                units = self.engine.generate(content, path)
            except Exception as e:
                self._record_failure(run, PipelineStage.SYNTHESIZE, path, e)
                continue
            for unit in units:
                await run.units.put((path, unit))

    async def _write_worker(self, run: _Run) -> None:
        while True:
            item = await run.units.get()
            if item is _DONE:
                return
            path, unit = item
            try:
                target = self._claim_target(run, path, unit)
                # Claim and lock request happen without suspending, so the
                # lock hands the file to writers in claim order
                async with run.locks.setdefault(target, asyncio.Lock()):
                    await write_text(target, unit.source)
            except (GenerationIOError, NameCollisionError) as e:
                self._record_failure(run, PipelineStage.WRITE, path, e, unit.name)
                continue
            if target not in run.report.written:
                run.report.written.append(target)
            logger.debug("test_file_written", source=path, target=str(target))

    def _claim_target(self, run: _Run, source_path: str, unit: GeneratedTestUnit) -> Path:
        """
        Resolve the output file of a unit under the collision policy.

        Runs without suspending, so check-and-claim is atomic with respect
        to the other write workers.
        """
        policy = self.settings.collision_policy
        stem = unit.qualified_name if policy is CollisionPolicy.QUALIFY else unit.name
        target = run.report.output_directory / f"{stem}{self.settings.output_extension}"

        previous = run.claimed.get(target)
        if previous is not None:
            if policy is CollisionPolicy.FAIL:
                raise NameCollisionError(
                    f"{target.name} was already generated from {previous}",
                    context={"target": str(target), "first": previous, "second": source_path},
                )
            logger.warning(
                "test_file_overwritten",
                target=str(target),
                first=previous,
                second=source_path,
            )
        run.claimed[target] = source_path
        return target

    def _record_failure(
        self,
        run: _Run,
        stage: PipelineStage,
        path: str,
        error: BaseException,
        unit_name: Optional[str] = None,
    ) -> None:
        run.report.failures.append(StageFailure(stage=stage, path=path, error=error, unit_name=unit_name))
        logger.error(
            "pipeline_item_failed",
            stage=stage.value,
            path=path,
            unit=unit_name,
            error=str(error),
            error_type=type(error).__name__,
        )
        if self.settings.fail_fast:
            self.cancel()


async def run_all(
    max_parallelism: int,
    output_directory: PathLike,
    input_paths: Iterable[PathLike],
    settings: Optional[Settings] = None,
) -> PipelineReport:
    """Run a default-configured pipeline once."""
    return await GenerationPipeline(settings=settings).run_all(max_parallelism, output_directory, input_paths)
