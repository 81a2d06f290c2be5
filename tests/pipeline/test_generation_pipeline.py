"""
Tests for the concurrent read -> synthesize -> write pipeline.
"""

import pytest

from testforge.pipeline.generation_pipeline import GenerationPipeline, run_all
from testforge.pipeline.models import PipelineStage
from testforge.shared.domain.exceptions import (
    GenerationIOError,
    NameCollisionError,
    ParseFailure,
    PipelineRunError,
)
from testforge.shared.infrastructure.config import CollisionPolicy, Settings
from testforge.synthesis.engine import SynthesisEngine


def single_class_source(namespace: str, class_name: str = "Foo") -> str:
    return f"""
namespace {namespace}
{{
    public class {class_name}
    {{
        public void Run()
        {{
        }}
    }}
}}
"""


def read_outputs(directory):
    return {path.name: path.read_bytes() for path in sorted(directory.iterdir())}


class CancellingEngine(SynthesisEngine):
    """Cancels its pipeline the first time it is asked to synthesize."""

    def __init__(self):
        super().__init__()
        self.pipeline = None

    def generate(self, source_text, source_path=None):
        self.pipeline.cancel()
        return super().generate(source_text, source_path)


class TestRunAll:
    @pytest.mark.asyncio
    async def test_one_file_per_class(self, settings, two_namespaces_file, tmp_path):
        out = tmp_path / "out"

        report = await GenerationPipeline(settings=settings).run_all(2, out, [two_namespaces_file])

        assert report.succeeded
        assert sorted(p.name for p in report.written) == ["InvoiceTests.cs", "ParcelTests.cs"]
        assert "namespace Billing.Tests" in (out / "InvoiceTests.cs").read_text(encoding="utf-8")
        assert "namespace Shipping.Tests" in (out / "ParcelTests.cs").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_output_matches_engine(self, settings, order_service_file, order_service_source, tmp_path):
        out = tmp_path / "out"

        await GenerationPipeline(settings=settings).run_all(1, out, [order_service_file])

        (unit,) = SynthesisEngine().generate(order_service_source)
        assert (out / "OrderServiceTests.cs").read_text(encoding="utf-8") == unit.source

    @pytest.mark.asyncio
    async def test_two_namespace_file_same_at_any_parallelism(self, settings, two_namespaces_file, tmp_path):
        await GenerationPipeline(settings=settings).run_all(1, tmp_path / "serial", [two_namespaces_file])
        await GenerationPipeline(settings=settings).run_all(4, tmp_path / "parallel", [two_namespaces_file])

        serial = read_outputs(tmp_path / "serial")
        assert sorted(serial) == ["InvoiceTests.cs", "ParcelTests.cs"]
        assert serial == read_outputs(tmp_path / "parallel")

    @pytest.mark.asyncio
    async def test_parallelism_does_not_change_output(self, settings, write_source, tmp_path):
        paths = [write_source(f"C{i}.cs", single_class_source(f"Ns{i}", f"C{i}")) for i in range(12)]

        await GenerationPipeline(settings=settings).run_all(1, tmp_path / "serial", paths)
        await GenerationPipeline(settings=settings).run_all(4, tmp_path / "parallel", paths)

        serial = read_outputs(tmp_path / "serial")
        assert len(serial) == 12
        assert serial == read_outputs(tmp_path / "parallel")

    @pytest.mark.asyncio
    async def test_creates_output_directory(self, settings, order_service_file, tmp_path):
        out = tmp_path / "deep" / "nested" / "out"

        await GenerationPipeline(settings=settings).run_all(1, out, [order_service_file])

        assert (out / "OrderServiceTests.cs").is_file()

    @pytest.mark.asyncio
    async def test_overwrites_existing_file(self, settings, order_service_file, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "OrderServiceTests.cs").write_text("stale", encoding="utf-8")

        await GenerationPipeline(settings=settings).run_all(1, out, [order_service_file])

        assert (out / "OrderServiceTests.cs").read_text(encoding="utf-8").startswith("using System;")

    @pytest.mark.asyncio
    async def test_no_inputs(self, settings, tmp_path):
        report = await GenerationPipeline(settings=settings).run_all(3, tmp_path / "out", [])

        assert report.written == []
        assert report.succeeded

    @pytest.mark.asyncio
    async def test_custom_extension(self, order_service_file, tmp_path):
        settings = Settings(queue_size=0, fail_fast=False, output_extension="g.cs")

        report = await GenerationPipeline(settings=settings).run_all(1, tmp_path / "out", [order_service_file])

        assert [p.name for p in report.written] == ["OrderServiceTests.g.cs"]

    @pytest.mark.asyncio
    async def test_invalid_parallelism(self, settings, tmp_path):
        with pytest.raises(ValueError):
            await GenerationPipeline(settings=settings).run_all(0, tmp_path / "out", [])

    @pytest.mark.asyncio
    async def test_unwritable_output_directory(self, settings, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(GenerationIOError):
            await GenerationPipeline(settings=settings).run_all(1, blocker / "out", [])

    @pytest.mark.asyncio
    async def test_module_level_run_all(self, settings, order_service_file, tmp_path):
        report = await run_all(2, tmp_path / "out", [str(order_service_file)], settings=settings)

        assert [p.name for p in report.written] == ["OrderServiceTests.cs"]

    @pytest.mark.asyncio
    async def test_byte_order_mark_is_ignored(self, settings, tmp_path):
        path = tmp_path / "Bom.cs"
        path.write_bytes(b"\xef\xbb\xbf" + single_class_source("Shop").encode("utf-8"))

        report = await GenerationPipeline(settings=settings).run_all(1, tmp_path / "out", [path])

        assert [p.name for p in report.written] == ["FooTests.cs"]


class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_file_does_not_stop_siblings(self, settings, order_service_file, tmp_path):
        missing = tmp_path / "src" / "Missing.cs"

        with pytest.raises(PipelineRunError) as exc_info:
            await GenerationPipeline(settings=settings).run_all(2, tmp_path / "out", [missing, order_service_file])

        report = exc_info.value.report
        assert [p.name for p in report.written] == ["OrderServiceTests.cs"]
        assert len(report.failures) == 1
        failure = report.failures[0]
        assert failure.stage is PipelineStage.READ
        assert failure.path == str(missing)
        assert isinstance(failure.error, GenerationIOError)
        assert str(missing) in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_syntax_error_is_a_synthesis_failure(self, settings, write_source, order_service_file, tmp_path):
        broken = write_source("Broken.cs", "namespace Broken { public class }")

        with pytest.raises(PipelineRunError) as exc_info:
            await GenerationPipeline(settings=settings).run_all(2, tmp_path / "out", [broken, order_service_file])

        report = exc_info.value.report
        assert report.failed_inputs == [str(broken)]
        assert report.failures[0].stage is PipelineStage.SYNTHESIZE
        assert isinstance(report.failures[0].error, ParseFailure)
        assert [p.name for p in report.written] == ["OrderServiceTests.cs"]

    @pytest.mark.asyncio
    async def test_report_serializes(self, settings, tmp_path):
        missing = tmp_path / "Missing.cs"

        with pytest.raises(PipelineRunError) as exc_info:
            await GenerationPipeline(settings=settings).run_all(1, tmp_path / "out", [missing])

        data = exc_info.value.report.to_dict()
        assert data["succeeded"] is False
        assert data["failures"][0]["stage"] == "read"
        assert data["failures"][0]["error_type"] == "GenerationIOError"

    @pytest.mark.asyncio
    async def test_fail_fast_skips_remaining_inputs(self, write_source, tmp_path):
        settings = Settings(queue_size=1, fail_fast=True)
        missing = tmp_path / "src" / "Missing.cs"
        others = [write_source(f"C{i}.cs", single_class_source(f"Ns{i}", f"C{i}")) for i in range(3)]

        with pytest.raises(PipelineRunError) as exc_info:
            await GenerationPipeline(settings=settings).run_all(1, tmp_path / "out", [missing, *others])

        report = exc_info.value.report
        assert report.cancelled
        assert report.written == []
        assert sorted(report.skipped) == sorted(str(p) for p in others)


class TestCollisions:
    @pytest.fixture
    def colliding_files(self, write_source):
        return [
            write_source("A.cs", single_class_source("A")),
            write_source("B.cs", single_class_source("B")),
        ]

    @pytest.mark.asyncio
    async def test_last_write_wins(self, settings, colliding_files, tmp_path):
        out = tmp_path / "out"

        report = await GenerationPipeline(settings=settings).run_all(1, out, colliding_files)

        assert [p.name for p in out.iterdir()] == ["FooTests.cs"]
        assert report.written == [out / "FooTests.cs"]
        assert "namespace B.Tests" in (out / "FooTests.cs").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_concurrent_collisions_leave_one_whole_unit(self, settings, write_source, tmp_path):
        long_source = "namespace Long { public class Foo { %s } }" % " ".join(
            f"public void M{i}() {{ }}" for i in range(200)
        )
        short_source = single_class_source("Short")
        paths = [
            write_source(f"F{i}.cs", long_source if i % 2 == 0 else short_source)
            for i in range(20)
        ]
        expected = {SynthesisEngine().generate(s)[0].source for s in (long_source, short_source)}
        out = tmp_path / "out"

        report = await GenerationPipeline(settings=settings).run_all(8, out, paths)

        assert report.written == [out / "FooTests.cs"]
        assert (out / "FooTests.cs").read_text(encoding="utf-8") in expected

    @pytest.mark.asyncio
    async def test_fail_policy(self, colliding_files, tmp_path):
        settings = Settings(queue_size=0, fail_fast=False, collision_policy=CollisionPolicy.FAIL)

        with pytest.raises(PipelineRunError) as exc_info:
            await GenerationPipeline(settings=settings).run_all(1, tmp_path / "out", colliding_files)

        report = exc_info.value.report
        assert len(report.written) == 1
        assert report.failures[0].stage is PipelineStage.WRITE
        assert report.failures[0].unit_name == "FooTests"
        assert isinstance(report.failures[0].error, NameCollisionError)

    @pytest.mark.asyncio
    async def test_qualify_policy(self, colliding_files, tmp_path):
        settings = Settings(queue_size=0, fail_fast=False, collision_policy=CollisionPolicy.QUALIFY)
        out = tmp_path / "out"

        await GenerationPipeline(settings=settings).run_all(2, out, colliding_files)

        assert sorted(p.name for p in out.iterdir()) == ["A.FooTests.cs", "B.FooTests.cs"]


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_drains_in_flight_and_skips_the_rest(self, settings, write_source, tmp_path):
        paths = [write_source(f"C{i}.cs", single_class_source(f"Ns{i}", f"C{i}")) for i in range(10)]
        engine = CancellingEngine()
        pipeline = GenerationPipeline(engine=engine, settings=settings)
        engine.pipeline = pipeline

        report = await pipeline.run_all(1, tmp_path / "out", paths)

        assert report.cancelled
        assert report.succeeded
        assert len(report.written) >= 1
        assert len(report.written) + len(report.skipped) == len(paths)

    def test_cancel_outside_a_run_is_a_no_op(self, settings):
        GenerationPipeline(settings=settings).cancel()
