"""
Audit side channel for translation cycles.

The orchestrator reports one TranslationRecord per cycle. Sinks are
best-effort: a failing sink is logged and never affects the caller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from lingocache.core.models import TranslationRecord

logger = logging.getLogger(__name__)


class AuditSink(ABC):
    """Receives a record after each orchestration cycle."""

    @abstractmethod
    async def record(self, entry: TranslationRecord) -> None:
        pass


class LoggingAuditSink(AuditSink):
    """Write audit records to the `lingocache.audit` logger."""

    def __init__(self, logger_name: str = "lingocache.audit"):
        self._logger = logging.getLogger(logger_name)

    async def record(self, entry: TranslationRecord) -> None:
        self._logger.info(
            f"{entry.source_lang}->{entry.target_lang} chars={entry.char_count} "
            f"url={entry.url or '-'} cache={'hit' if entry.cache_hit else 'miss'}"
            f"{' degraded' if entry.degraded else ''}"
        )


class InMemoryAuditSink(AuditSink):
    """Keep records in memory (development and tests)."""

    def __init__(self):
        self.records: list[TranslationRecord] = []

    async def record(self, entry: TranslationRecord) -> None:
        self.records.append(entry)

    @property
    def cache_hit_rate(self) -> float:
        if not self.records:
            return 0.0
        return sum(1 for r in self.records if r.cache_hit) / len(self.records)

    def translated_urls(self, target_lang: str) -> set[str]:
        """Distinct URLs translated into a language."""
        return {
            r.url for r in self.records
            if r.target_lang == target_lang and r.url and not r.degraded
        }


async def emit(sink: AuditSink | None, entry: TranslationRecord) -> None:
    """Deliver a record, swallowing sink failures."""
    if sink is None:
        return
    try:
        await sink.record(entry)
    except Exception as e:
        logger.warning(f"Audit sink {sink.__class__.__name__} failed: {e}")
