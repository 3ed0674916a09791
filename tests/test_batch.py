from datetime import datetime

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from bizpulse.batch import BatchRunner, format_batch_report
from bizpulse.models import (
    BatchReport,
    GenerationMetadata,
    GenerationResult,
    NormalizedBusiness,
    ValidationResult,
)


def ok_result(identifier, score=92):
    return GenerationResult(
        success=True,
        identifier=identifier,
        metadata=GenerationMetadata(stage_calls_used=7, elapsed_ms=1500, estimated_cost=0.21),
        business=NormalizedBusiness(identifier=identifier, name=f"Business {identifier}", category="cafe",
                                    address="Dizengoff 1"),
        validation=ValidationResult(is_valid=True, score=score, errors=[], warnings=[], suggestions=[]),
    )


def skipped_result(identifier):
    return GenerationResult(
        success=False,
        identifier=identifier,
        metadata=GenerationMetadata(stage_calls_used=0, elapsed_ms=5, estimated_cost=0.0),
        errors=["Business licence has expired"],
        skipped=True,
    )


def make_notifier():
    notifier = MagicMock()
    notifier.notify_critical_error = AsyncMock(return_value={"email": True, "slack": True})
    notifier.notify_batch_summary = AsyncMock(return_value={"email": True})
    return notifier


def make_orchestrator(failing=()):
    async def generate(identifier, options=None):
        if identifier in failing:
            raise RuntimeError(f"orchestration exploded for {identifier}")
        return ok_result(identifier)

    orchestrator = MagicMock()
    orchestrator.generate = AsyncMock(side_effect=generate)
    return orchestrator


@pytest.mark.asyncio
async def test_two_thrown_orchestrations_out_of_ten_escalate():
    identifiers = [str(i) for i in range(10)]
    orchestrator = make_orchestrator(failing={"3", "7"})
    notifier = make_notifier()
    runner = BatchRunner(orchestrator, notifier, item_delay=2.0)

    with patch("bizpulse.batch.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        report = await runner.run_batch(identifiers)

    assert report.processed == 10
    assert report.successful == 8
    assert report.failed == 2
    assert report.success_rate == pytest.approx(0.8)
    assert report.escalated is True
    assert [r.identifier for r in report.results] == identifiers
    assert "orchestration exploded for 3" in report.results[3].errors[0]
    # Delay only between items
    assert mock_sleep.await_count == 9
    mock_sleep.assert_awaited_with(2.0)

    notifier.notify_critical_error.assert_awaited_once()
    system, message, context = notifier.notify_critical_error.await_args.args
    assert system == "batch-generation"
    assert set(context["failures"]) == {"3", "7"}
    notifier.notify_batch_summary.assert_awaited_once_with(10, 8, 2, 0, pytest.approx(0.8))


@pytest.mark.asyncio
async def test_empty_batch_does_not_touch_orchestrator():
    orchestrator = make_orchestrator()
    notifier = make_notifier()
    runner = BatchRunner(orchestrator, notifier)

    report = await runner.run_batch([])

    assert (report.processed, report.successful, report.failed, report.skipped) == (0, 0, 0, 0)
    assert report.success_rate == 0.0
    assert report.results == []
    assert report.escalated is False
    orchestrator.generate.assert_not_called()
    notifier.notify_batch_summary.assert_not_called()


@pytest.mark.asyncio
async def test_small_batches_never_escalate():
    runner = BatchRunner(make_orchestrator(failing={"a", "b"}), make_notifier(), item_delay=0)

    report = await runner.run_batch(["a", "b", "c"])

    assert report.success_rate == pytest.approx(1 / 3)
    assert report.escalated is False
    runner.notifier.notify_critical_error.assert_not_called()


@pytest.mark.asyncio
async def test_skipped_results_are_counted_separately():
    orchestrator = MagicMock()
    orchestrator.generate = AsyncMock(side_effect=[ok_result("1"), skipped_result("2")])
    runner = BatchRunner(orchestrator, None, item_delay=0)

    report = await runner.run_batch(["1", "2"])

    assert (report.successful, report.failed, report.skipped) == (1, 0, 1)
    assert report.success_rate == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_notifier_failures_do_not_break_the_batch():
    notifier = make_notifier()
    notifier.notify_batch_summary = AsyncMock(side_effect=RuntimeError("smtp down"))
    runner = BatchRunner(make_orchestrator(), notifier, item_delay=0)

    report = await runner.run_batch(["1"])

    assert report.successful == 1


@pytest.mark.asyncio
async def test_new_registrations_skip_already_stored_businesses():
    registry = MagicMock()
    registry.fetch_new_registrations = AsyncMock(return_value=[
        {"_id": 11, "issue_date": datetime.now().date().isoformat()},
        {"_id": 12},
        {"_id": 11},
        {"business_name": "no id"},
    ])
    storage = MagicMock()
    storage.existing_external_ids = AsyncMock(return_value={"12"})
    orchestrator = make_orchestrator()
    runner = BatchRunner(orchestrator, None, item_delay=0, registry=registry, storage=storage)

    report = await runner.run_new_registrations(days_back=3)

    registry.fetch_new_registrations.assert_awaited_once_with(3)
    storage.existing_external_ids.assert_awaited_once_with(["11", "12"], table="businesses")
    assert report.processed == 1
    assert orchestrator.generate.await_args.args[0] == "11"


def test_batch_report_text_and_frame():
    results = [ok_result("1", score=90), ok_result("2", score=80), skipped_result("3")]
    report = BatchReport(processed=3, successful=2, failed=0, skipped=1, success_rate=2 / 3, results=results)

    text = format_batch_report(report)

    assert "Total Businesses: 3" in text
    assert "Average generation time: 1.50s" in text
    assert "Total API calls: 14" in text
    assert "Estimated cost: $0.42" in text
    assert "1. Business 1: 90/100" in text
    assert "Mean: 85.0" in text
    assert "→ Business licence has expired" in text

    frame = report.to_frame()
    assert list(frame["identifier"]) == ["1", "2", "3"]
    assert list(frame["quality_score"][:2]) == [90, 80]
    assert bool(frame["skipped"].iloc[2]) is True
