"""
JSONL event logger with Windows Event Viewer style Event IDs.

Thread-safe async logging for SIEM integration.
"""
import asyncio
from pathlib import Path
from typing import Optional, List, Dict, Any

from fedtrust.schemas import Event, EventLevel, EventCategory, InstanceReport, PolicyAnalysisResult
import config


class EventLogger:
    """
    Async JSONL logger for fedtrust events.

    Event ID ranges:
    - FTS-1001 to FTS-1999: Scoring events
    - FTS-2001 to FTS-2999: Policy analysis events
    - FTS-4001 to FTS-4999: System events

    All events written to logs/events.jsonl in append-only mode.
    """

    def __init__(self, log_path: Path = config.EVENT_LOG_FILE, low_score_threshold: int = config.LOW_SCORE_THRESHOLD):
        self.log_path = Path(log_path)
        self.low_score_threshold = low_score_threshold
        self.lock = asyncio.Lock()

    async def log_event(self, event: Event) -> None:
        """
        Append event to JSONL log file.

        Args:
            event: Event object to log
        """
        async with self.lock:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(event.to_jsonl() + "\n")

    async def log_instance_scored(self, report: InstanceReport) -> None:
        """
        Log a completed instance score.

        Event IDs:
        - FTS-1001: Instance scored
        - FTS-1002: Score below warning threshold
        - FTS-1003: Critical blocklist hit (logged in addition)
        """
        overall = report.safety_score.overall

        if overall < self.low_score_threshold:
            event_id = 1002
            level = EventLevel.WARNING
        else:
            event_id = 1001
            level = EventLevel.INFORMATION

        await self.log_event(Event(
            event_id=event_id,
            level=level,
            category=EventCategory.SCORING,
            message=f"Instance scored: {report.domain} - {overall}/100 ({report.score_label})",
            domain=report.domain,
            details={
                "overall": overall,
                "breakdown": report.safety_score.breakdown.model_dump(),
                "flags": report.safety_score.flags,
                "network_health": report.network_health.total_score,
                "metadata_maturity": report.metadata_maturity.total_score,
                "network_degraded": report.network_health.degraded,
            }
        ))

        if "Found on critical blocklists" in report.safety_score.flags:
            await self.log_event(Event(
                event_id=1003,
                level=EventLevel.ERROR,
                category=EventCategory.SCORING,
                message=f"Instance found on critical blocklist: {report.domain}",
                domain=report.domain,
                details={"trust": report.safety_score.breakdown.trust}
            ))

    async def log_policy_analysis(self, result: PolicyAnalysisResult, domain: Optional[str] = None) -> None:
        """
        Log a policy analysis (FTS-2001) and any pattern diagnostics (FTS-1004).
        """
        await self.log_event(Event(
            event_id=2001,
            level=EventLevel.INFORMATION,
            category=EventCategory.POLICY,
            message=f"Moderation policy analysis completed: {result.normalized_score:.1f}/37.5",
            domain=domain,
            details={
                "raw_score": result.raw_score,
                "normalized_score": result.normalized_score,
                "confidence": result.confidence,
                "signals": len(result.matched_signals),
                "meets_minimum": result.meets_minimum,
                "covenant_score": result.covenant_alignment.score,
                "missing_categories": result.missing_categories,
                "flags": result.flags,
            }
        ))

        for diagnostic in result.diagnostics:
            await self.log_event(Event(
                event_id=1004,
                level=EventLevel.WARNING,
                category=EventCategory.POLICY,
                message=config.EVENT_IDS[1004],
                domain=domain,
                details={"diagnostic": diagnostic}
            ))

    async def log_system_event(
        self,
        event_id: int,
        message: str,
        details: Optional[dict] = None,
        level: EventLevel = EventLevel.INFORMATION
    ):
        """
        Log system-level event.

        Event IDs:
        - FTS-4001: Pipeline started
        - FTS-4002: Reference snapshot unavailable
        - FTS-4003: Snapshot ingestion
        """
        event = Event(
            event_id=event_id,
            level=level,
            category=EventCategory.SYSTEM,
            message=message,
            details=details or {}
        )
        await self.log_event(event)

    def read_events(
        self,
        limit: int = 100,
        level: Optional[EventLevel] = None,
        domain: Optional[str] = None
    ) -> List[Event]:
        """
        Read recent events from log.

        Args:
            limit: Maximum number of events to return
            level: Filter by event level (optional)
            domain: Filter by instance domain (optional)

        Returns:
            List of Event objects (most recent first)
        """
        if not self.log_path.exists():
            return []

        events = []
        with open(self.log_path, "r", encoding="utf-8") as f:
            lines = f.readlines()

        for line in reversed(lines):
            if not line.strip():
                continue
            try:
                event = Event.model_validate_json(line)
            except ValueError:
                # Skip malformed lines
                continue
            if level is not None and event.level != level:
                continue
            if domain is not None and event.domain != domain:
                continue
            events.append(event)
            if len(events) >= limit:
                break

        return events

    def get_event_count(self) -> int:
        """Get total number of events logged"""
        if not self.log_path.exists():
            return 0

        with open(self.log_path, "r", encoding="utf-8") as f:
            return sum(1 for line in f if line.strip())

    def summarize(self) -> Dict[str, Any]:
        """Event counts by ID and level, for diagnostics"""
        by_id: Dict[int, int] = {}
        by_level: Dict[str, int] = {}
        for event in self.read_events(limit=self.get_event_count() or 1):
            by_id[event.event_id] = by_id.get(event.event_id, 0) + 1
            by_level[event.level.value] = by_level.get(event.level.value, 0) + 1
        return {"total": sum(by_id.values()), "by_id": by_id, "by_level": by_level}
