"""
Sequential batch runner with escalation and reporting.
"""
import asyncio
import time
from typing import List, Optional, Sequence

import numpy as np
from loguru import logger

from bizpulse.config import (
    BATCH_ITEM_DELAY,
    DAYS_BACK,
    ESCALATION_MIN_SAMPLE,
    ESCALATION_SUCCESS_THRESHOLD,
)
from bizpulse.generation.orchestrator import BUSINESS_TABLE
from bizpulse.models import BatchReport, GenerationMetadata, GenerationOptions, GenerationResult
from bizpulse.normalizer import pick

RULE = "═" * 39


def _failed_result(identifier: str, error: Exception) -> GenerationResult:
    return GenerationResult(
        success=False,
        identifier=identifier,
        metadata=GenerationMetadata(stage_calls_used=0, elapsed_ms=0, estimated_cost=0.0),
        errors=[str(error) or error.__class__.__name__],
    )


class BatchRunner:
    """
    Runs the orchestrator over many identifiers, one at a time, with a fixed
    delay between items to respect external rate limits.
    """

    def __init__(
        self,
        orchestrator,
        notifier=None,
        item_delay: float = BATCH_ITEM_DELAY,
        min_sample: int = ESCALATION_MIN_SAMPLE,
        success_threshold: float = ESCALATION_SUCCESS_THRESHOLD,
        registry=None,
        storage=None,
    ):
        self.orchestrator = orchestrator
        self.notifier = notifier
        self.item_delay = item_delay
        self.min_sample = min_sample
        self.success_threshold = success_threshold
        self.registry = registry or getattr(orchestrator, "registry", None)
        self.storage = storage or getattr(orchestrator, "storage", None)

    async def run_batch(self, identifiers: Sequence[str],
                        options: Optional[GenerationOptions] = None) -> BatchReport:
        """
        Generate content for every identifier in order.

        Args:
            identifiers (Sequence[str]): Registry identifiers.
            options (Optional[GenerationOptions]): Passed through to every run.

        Returns:
            BatchReport: Counts, success rate and per-item results. An empty input
            returns an all-zero report without touching the orchestrator.
        """
        if not identifiers:
            logger.info("Nothing to do: empty batch")
            return BatchReport(processed=0, successful=0, failed=0, skipped=0, success_rate=0.0, results=[])

        start = time.perf_counter()
        logger.info(f"🚀 Starting batch generation for {len(identifiers)} businesses")
        results: List[GenerationResult] = []
        for i, identifier in enumerate(identifiers):
            if i > 0 and self.item_delay > 0:
                await asyncio.sleep(self.item_delay)
            try:
                result = await self.orchestrator.generate(identifier, options)
            except Exception as e:
                logger.error(f"❌ Failed to generate content for {identifier}: {e}")
                result = _failed_result(identifier, e)
            results.append(result)

        processed = len(results)
        successful = sum(1 for r in results if r.success)
        skipped = sum(1 for r in results if not r.success and r.skipped)
        success_rate = successful / processed
        escalated = processed > self.min_sample and success_rate < self.success_threshold

        report = BatchReport(
            processed=processed,
            successful=successful,
            failed=processed - successful - skipped,
            skipped=skipped,
            success_rate=success_rate,
            results=results,
            escalated=escalated,
            elapsed_ms=int((time.perf_counter() - start) * 1000),
        )
        logger.info(f"✅ Batch generation complete: {successful}/{processed} successful")

        if escalated:
            await self._escalate(report)
        await self._summarize(report)
        return report

    async def _escalate(self, report: BatchReport) -> None:
        logger.error(f"🚨 Success rate {report.success_rate:.0%} below {self.success_threshold:.0%}, escalating")
        if self.notifier is None:
            return
        breakdown = {r.identifier: r.errors for r in report.results if not r.success}
        try:
            await self.notifier.notify_critical_error(
                "batch-generation",
                f"Success rate {report.success_rate * 100:.1f}% is below "
                f"{self.success_threshold * 100:.0f}% ({report.successful}/{report.processed} succeeded)",
                {
                    "processed": report.processed,
                    "successful": report.successful,
                    "failed": report.failed,
                    "skipped": report.skipped,
                    "failures": breakdown,
                },
            )
        except Exception as e:
            logger.error(f"Failed to escalate batch degradation: {e}")

    async def _summarize(self, report: BatchReport) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.notify_batch_summary(
                report.processed, report.successful, report.failed, report.skipped, report.success_rate
            )
        except Exception as e:
            logger.error(f"Failed to send batch summary: {e}")

    async def run_new_registrations(self, days_back: int = DAYS_BACK,
                                    options: Optional[GenerationOptions] = None) -> BatchReport:
        """Run a batch over recent registrations that have no stored content yet."""
        logger.info(f"🤖 Generating content for new businesses (last {days_back} days)")
        records = await self.registry.fetch_new_registrations(days_back)
        identifiers = []
        for record in records:
            identifier = pick(record, "identifier")
            if identifier is not None and str(identifier) not in identifiers:
                identifiers.append(str(identifier))
        logger.info(f"Found {len(identifiers)} new businesses")

        if identifiers and self.storage is not None:
            try:
                existing = await self.storage.existing_external_ids(identifiers, table=BUSINESS_TABLE)
            except Exception as e:
                logger.warning(f"⚠️ Could not check stored businesses, processing all: {e}")
                existing = set()
            identifiers = [i for i in identifiers if i not in existing]
            logger.info(f"{len(identifiers)} need content")

        return await self.run_batch(identifiers, options)


def format_batch_report(report: BatchReport) -> str:
    """Human-readable rollup of a batch run."""
    successful = [r for r in report.results if r.success]
    failed = [r for r in report.results if not r.success]

    lines = [
        RULE,
        "  CONTENT GENERATION PIPELINE REPORT",
        RULE,
        "",
        f"Total Businesses: {report.processed}",
        f"✓ Successful: {report.successful}",
        f"✗ Failed: {report.failed}",
        f"⏭ Skipped: {report.skipped}",
        f"Success Rate: {report.success_rate * 100:.1f}%",
        "",
    ]

    if successful:
        times = np.array([r.metadata.elapsed_ms for r in successful], dtype=float) / 1000
        calls = np.array([r.metadata.stage_calls_used for r in successful])
        costs = np.array([r.metadata.estimated_cost for r in successful], dtype=float)
        lines += [
            "📊 SUCCESS METRICS:",
            f"   Average generation time: {times.mean():.2f}s",
            f"   Total API calls: {int(calls.sum())}",
            f"   Estimated cost: ${costs.sum():.2f}",
            "",
        ]

        scored = [r for r in successful if r.validation is not None]
        if scored:
            scores = np.array([r.validation.score for r in scored])
            lines.append("🎯 QUALITY SCORES:")
            for i, r in enumerate(scored, 1):
                lines.append(f"   {i}. {r.business.name if r.business else r.identifier}: {r.validation.score}/100")
            lines.append(f"   Mean: {scores.mean():.1f}  Median: {np.median(scores):.1f}  Min: {scores.min()}")
            lines.append("")

    if failed:
        lines.append("❌ FAILURES:")
        for i, r in enumerate(failed, 1):
            label = r.business.name if r.business else r.identifier or "Unknown"
            lines.append(f"   {i}. {label}{' (skipped)' if r.skipped else ''}")
            for error in r.errors:
                lines.append(f"      → {error}")
        lines.append("")

    if report.escalated:
        lines.append("🚨 Escalated: success rate below threshold")
        lines.append("")
    lines.append(RULE)
    return "\n".join(lines) + "\n"
