"""
Narrative hook — optional free-text commentary on an analysis.

The generator itself (an LLM client, a template engine) lives outside the
core. Whatever it returns is stored verbatim in AnalysisResult.narrative;
when it is missing or fails, every other field is unaffected.
"""

from dataclasses import replace
from typing import Protocol

import structlog

from analytics.orchestrator import AnalysisResult

logger = structlog.get_logger()


class NarrativeGenerator(Protocol):
    def generate(self, result: AnalysisResult) -> str: ...


def attach_narrative(
    result: AnalysisResult,
    generator: NarrativeGenerator | None,
    only_if_high_priority: bool = True,
) -> AnalysisResult:
    """
    Return a copy of {result} carrying the generator's text.

    Skipped when no generator is configured or, by default, when there is
    no high-priority issue to comment on. A generator failure is logged and
    the result is returned without narrative.
    """
    if generator is None:
        return result
    if only_if_high_priority and result.high_priority_count == 0:
        return result

    try:
        text = generator.generate(result)
    except Exception as exc:  # noqa: BLE001
        logger.error("narrative.failed", error=str(exc))
        return result

    logger.info("narrative.attached", high_priority=result.high_priority_count, length=len(text))
    return replace(result, narrative=text)
