"""Tests for the staged analysis pipeline."""

import asyncio
import os
import time
from datetime import datetime, timezone

import pytest
from hawkeye.config import AnalyzerConfig
from hawkeye.detectors import Detector
from hawkeye.errors import AnalysisCancelled, InputError, StageError, SynthesisError
from hawkeye.pipeline import AnalysisPipeline, STAGES, analyze_firmware
from hawkeye.progress import ProgressChannel
from hawkeye.structure import StructureParser
from hawkeye.types import AnalysisStep, FirmwareFile

EXPECTED_STEPS = [
    AnalysisStep.UPLOADING,
    AnalysisStep.ANALYZING,
    AnalysisStep.STRUCTURING,
    AnalysisStep.SCANNING,
    AnalysisStep.REPORTING,
    AnalysisStep.COMPLETE,
]
EXPECTED_PERCENTS = [10, 30, 50, 70, 90, 100]


def fast_config(**kwargs):
    return AnalyzerConfig(delay_scale=0.0, **kwargs)


@pytest.fixture
def router_bin():
    return FirmwareFile(name="router.bin", size=1048576)


@pytest.fixture
def pipeline():
    return AnalysisPipeline(config=fast_config())


class BrokenDetector(Detector):
    def detect(self, file_name, file_size, content=None):
        raise RuntimeError("detector crashed")


class NegativeParser(StructureParser):
    def parse(self, file_size, content=None):
        raise SynthesisError("negative section size")


class TestStageSequence:
    """Test progress emission order."""

    def test_stage_table(self):
        assert [s[0] for s in STAGES] == EXPECTED_STEPS
        assert [s[1] for s in STAGES] == EXPECTED_PERCENTS

    @pytest.mark.asyncio
    async def test_emits_all_stages_in_order(self, pipeline, router_bin):
        events = []
        pipeline.on_progress(events.append)

        await pipeline.run(router_bin)

        assert [e.step for e in events] == EXPECTED_STEPS
        assert [e.progress for e in events] == EXPECTED_PERCENTS
        assert events[-1].message == "Analysis complete!"

    @pytest.mark.asyncio
    async def test_same_sequence_for_any_file(self, pipeline):
        for file in [FirmwareFile("a", 1), FirmwareFile("b.hex", 7), FirmwareFile("c.img", 10 ** 6)]:
            events = []
            unsubscribe = pipeline.on_progress(events.append)
            await pipeline.run(file)
            unsubscribe()
            assert [e.progress for e in events] == EXPECTED_PERCENTS

    @pytest.mark.asyncio
    async def test_per_run_observer(self, pipeline, router_bin):
        """Per-run observer only sees its own run."""
        mine, shared = [], []
        pipeline.on_progress(shared.append)

        await pipeline.run(router_bin, observer=mine.append)
        await pipeline.run(FirmwareFile("other.fw", 2048))

        assert len(mine) == 6
        assert len(shared) == 12

    @pytest.mark.asyncio
    async def test_concurrent_runs_keep_streams_apart(self):
        pipeline = AnalysisPipeline(config=fast_config())
        first, second = [], []

        reports = await asyncio.gather(
            pipeline.run(FirmwareFile("one.bin", 100), observer=first.append),
            pipeline.run(FirmwareFile("two.hex", 200), observer=second.append),
        )

        assert [e.progress for e in first] == EXPECTED_PERCENTS
        assert [e.progress for e in second] == EXPECTED_PERCENTS
        assert reports[0].file_name == "one.bin"
        assert reports[1].file_type == "Intel HEX Format"

    @pytest.mark.asyncio
    async def test_stage_delays_are_applied(self, router_bin, monkeypatch):
        """Each non-terminal stage sleeps for its configured delay."""
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        config = AnalyzerConfig(delay_scale=0.5)
        await AnalysisPipeline(config=config).run(router_bin)

        assert sleeps == [0.4, 0.6, 0.5, 0.75, 0.5]


class TestReport:
    """Test the report returned by a run."""

    @pytest.mark.asyncio
    async def test_router_bin_end_to_end(self, pipeline, router_bin):
        report = await pipeline.run(router_bin)

        assert report.file_type == "Binary Firmware"
        assert report.overall_risk_score == 10
        sections = report.structure_analysis.sections
        assert len(sections) == 6
        assert [s.size for s in sections][:5] == [20972, 104858, 314573, 419430, 157286]
        assert [s.offset for s in sections] == [0, 20972, 125830, 440403, 859833, 1017119]
        assert report.entropy == 7.2
        assert report.compression_ratio == 0.3

    @pytest.mark.asyncio
    async def test_reads_content_from_path(self, pipeline, tmp_path):
        firmware = tmp_path / "flash.bin"
        firmware.write_bytes(bytes(range(256)) * 16)

        report = await pipeline.run(FirmwareFile.from_path(firmware))

        assert report.file_size == 4096
        assert report.entropy == pytest.approx(8.0)
        assert report.compression_ratio < 0.3

    @pytest.mark.asyncio
    async def test_read_content_disabled(self, tmp_path):
        firmware = tmp_path / "flash.bin"
        firmware.write_bytes(b"\x00" * 512)

        pipeline = AnalysisPipeline(config=fast_config(read_content=False))
        report = await pipeline.run(FirmwareFile.from_path(firmware))
        assert report.entropy == 7.2

    @pytest.mark.asyncio
    async def test_dated_at_completion(self, pipeline, router_bin):
        """Report id and date are taken once the run has completed."""
        completed_at = []

        def observer(progress):
            if progress.step is AnalysisStep.COMPLETE:
                completed_at.append(datetime.now(timezone.utc))

        report = await pipeline.run(router_bin, observer=observer)

        assert len(completed_at) == 1
        assert report.analysis_date >= completed_at[0]
        assert report.id == f"report-{int(report.analysis_date.timestamp() * 1000)}"

    @pytest.mark.asyncio
    async def test_large_file_does_not_block_event_loop(self, tmp_path):
        """Reading and measuring a big image leaves the loop responsive."""
        firmware = tmp_path / "large.bin"
        firmware.write_bytes(os.urandom(16 * 1024 * 1024))
        pipeline = AnalysisPipeline(config=fast_config())

        gaps = []
        done = asyncio.Event()

        async def ticker():
            last = time.perf_counter()
            while not done.is_set():
                await asyncio.sleep(0.01)
                now = time.perf_counter()
                gaps.append(now - last)
                last = now

        ticks = asyncio.create_task(ticker())
        try:
            report = await pipeline.run(FirmwareFile.from_path(firmware))
        finally:
            done.set()
            await ticks

        assert report.entropy > 7.9
        assert len(gaps) > 1
        assert max(gaps) < 0.25

    @pytest.mark.asyncio
    async def test_analyze_firmware_helper(self, router_bin):
        report = await analyze_firmware(router_bin, config=fast_config())
        assert report.file_name == "router.bin"

    @pytest.mark.asyncio
    async def test_log_callback(self, router_bin):
        lines = []
        pipeline = AnalysisPipeline(config=fast_config(), log_callback=lines.append)
        await pipeline.run(router_bin)

        assert lines[0].startswith("[*] Starting analysis of router.bin")
        assert lines[-1].startswith("[+] Analysis complete")


class TestInputErrors:
    """Test rejection before any stage."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("file", [
        FirmwareFile("empty.bin", 0),
        FirmwareFile("neg.bin", -1),
    ])
    async def test_invalid_size(self, pipeline, file):
        events = []
        pipeline.on_progress(events.append)
        with pytest.raises(InputError):
            await pipeline.run(file)
        assert events == []

    @pytest.mark.asyncio
    async def test_size_ceiling(self):
        pipeline = AnalysisPipeline(config=fast_config(max_file_size=1024))
        events = []
        pipeline.on_progress(events.append)
        with pytest.raises(InputError, match="too large"):
            await pipeline.run(FirmwareFile("big.bin", 1025))
        assert events == []

    @pytest.mark.asyncio
    async def test_unreadable_file(self, pipeline, tmp_path):
        missing = FirmwareFile("gone.bin", 10, path=tmp_path / "gone.bin")
        with pytest.raises(InputError, match="Cannot read"):
            await pipeline.run(missing)

    @pytest.mark.asyncio
    async def test_size_mismatch(self, pipeline, tmp_path):
        firmware = tmp_path / "flash.bin"
        firmware.write_bytes(b"\x01" * 10)
        with pytest.raises(InputError):
            await pipeline.run(FirmwareFile("flash.bin", 20, path=firmware))


class TestStageErrors:
    """Test failures during stage work."""

    @pytest.mark.asyncio
    async def test_detector_failure(self, router_bin):
        pipeline = AnalysisPipeline(detector=BrokenDetector(), config=fast_config())
        events = []
        pipeline.on_progress(events.append)

        with pytest.raises(StageError) as exc_info:
            await pipeline.run(router_bin)

        assert exc_info.value.step is AnalysisStep.SCANNING
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        # Events already emitted stand; nothing after the failing stage
        assert [e.step for e in events] == EXPECTED_STEPS[:4]

    @pytest.mark.asyncio
    async def test_synthesis_error_reported_with_stage(self, router_bin):
        pipeline = AnalysisPipeline(structure_parser=NegativeParser(), config=fast_config())
        with pytest.raises(StageError) as exc_info:
            await pipeline.run(router_bin)
        assert exc_info.value.step is AnalysisStep.STRUCTURING
        assert isinstance(exc_info.value.__cause__, SynthesisError)

    @pytest.mark.asyncio
    async def test_observers_survive_failed_run(self, router_bin):
        channel = ProgressChannel()
        events = []
        channel.subscribe(events.append)

        failing = AnalysisPipeline(channel=channel, detector=BrokenDetector(), config=fast_config())
        with pytest.raises(StageError):
            await failing.run(router_bin)

        events.clear()
        working = AnalysisPipeline(channel=channel, config=fast_config())
        await working.run(router_bin)
        assert [e.progress for e in events] == EXPECTED_PERCENTS

    @pytest.mark.asyncio
    async def test_observer_failure_is_stage_error(self, pipeline, router_bin):
        def broken(progress):
            if progress.step is AnalysisStep.STRUCTURING:
                raise ValueError("observer bug")

        pipeline.on_progress(broken)
        with pytest.raises(StageError) as exc_info:
            await pipeline.run(router_bin)
        assert exc_info.value.step is AnalysisStep.STRUCTURING

    @pytest.mark.asyncio
    async def test_run_observer_sees_event_when_shared_observer_fails(self, pipeline, router_bin):
        def broken(progress):
            raise ValueError("observer bug")

        mine = []
        pipeline.on_progress(broken)
        with pytest.raises(StageError) as exc_info:
            await pipeline.run(router_bin, observer=mine.append)

        assert exc_info.value.step is AnalysisStep.UPLOADING
        assert [e.step for e in mine] == [AnalysisStep.UPLOADING]


class TestCancellation:
    """Test the cancellation token."""

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, pipeline, router_bin):
        cancel = asyncio.Event()
        cancel.set()
        events = []
        pipeline.on_progress(events.append)

        with pytest.raises(AnalysisCancelled) as exc_info:
            await pipeline.run(router_bin, cancel_event=cancel)

        assert exc_info.value.step is AnalysisStep.UPLOADING
        assert events == []

    @pytest.mark.asyncio
    async def test_cancel_mid_run(self, pipeline, router_bin):
        cancel = asyncio.Event()
        events = []

        def observer(progress):
            events.append(progress)
            if progress.step is AnalysisStep.STRUCTURING:
                cancel.set()

        with pytest.raises(AnalysisCancelled) as exc_info:
            await pipeline.run(router_bin, observer=observer, cancel_event=cancel)

        assert exc_info.value.step is AnalysisStep.SCANNING
        assert [e.step for e in events] == EXPECTED_STEPS[:3]
