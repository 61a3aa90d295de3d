"""
fedtrust pipeline: orchestrates policy, network and metadata scoring.

The engine itself is synchronous and side-effect free; this module adds
event logging around it for the API and scripts.
"""
import asyncio
from typing import Optional, Sequence, Union

from fedtrust.adapters.snapshot_store import SnapshotStore
from fedtrust.detection.composite import CompositeScoreAggregator, score_label
from fedtrust.detection.metadata_maturity import MetadataMaturityEvaluator
from fedtrust.detection.network_health import NetworkHealthEvaluator
from fedtrust.detection.policy_classifier import PolicyTextClassifier
from fedtrust.detection.rule_library import RuleLibrary
from fedtrust.logging.event_logger import EventLogger
from fedtrust.schemas import EventLevel, InstanceFacts, InstanceReport, ModerationRule, PolicyAnalysisResult


class ScoringPipeline:
    """
    End-to-end instance scoring.

    Flow:
    1. Classify published moderation rules
    2. Evaluate network health against reference snapshots
    3. Evaluate metadata maturity
    4. Aggregate the composite safety score
    5. Log events (policy analysis, score, critical hits)
    6. Return the InstanceReport

    Collaborators are injected; omitted ones are built from config.
    """

    def __init__(
        self,
        library: Optional[RuleLibrary] = None,
        snapshots: Optional[SnapshotStore] = None,
        event_logger: Optional[EventLogger] = None
    ):
        self.library = library or RuleLibrary()
        self.snapshots = snapshots or SnapshotStore()
        self.logger = event_logger or EventLogger()

        self.classifier = PolicyTextClassifier(self.library)
        self.metadata_evaluator = MetadataMaturityEvaluator()
        self.aggregator = CompositeScoreAggregator()
        self._started = False

    @property
    def network_evaluator(self) -> NetworkHealthEvaluator:
        return NetworkHealthEvaluator(
            percentiles=self.snapshots.percentiles(),
            reputation=self.snapshots.reputation(),
        )

    async def start(self) -> None:
        """Load snapshots and log startup events (runs once)"""
        if self._started:
            return
        self._started = True

        percentiles = self.snapshots.percentiles()
        reputation = self.snapshots.reputation()

        await self.logger.log_system_event(
            event_id=4001,
            message="Scoring pipeline started",
            details={
                "pattern_count": len(self.library),
                "pattern_diagnostics": len(self.library.diagnostics),
                "percentiles_loaded": percentiles is not None,
                "reputation_loaded": reputation is not None,
            }
        )

        if percentiles is None or reputation is None:
            await self.logger.log_system_event(
                event_id=4002,
                message="Reference snapshot unavailable - network health will use default values",
                details={"diagnostics": self.snapshots.diagnostics},
                level=EventLevel.WARNING
            )

    def score(self, facts: InstanceFacts) -> InstanceReport:
        """
        Score one instance without side effects.

        Args:
            facts: Validated instance facts

        Returns:
            InstanceReport
        """
        policy = self.classifier.analyze(facts.rules)

        network_evaluator = self.network_evaluator
        network = network_evaluator.evaluate(facts)
        metadata = self.metadata_evaluator.evaluate(facts.metadata, facts.rules)
        safety = self.aggregator.compute(facts, policy)
        label, _ = score_label(safety.overall)

        return InstanceReport(
            domain=facts.domain,
            safety_score=safety,
            score_label=label,
            policy_analysis=policy,
            network_health=network,
            metadata_maturity=metadata,
            network_summary=network_evaluator.summarize(network),
            metadata_summary=self.metadata_evaluator.summarize(metadata),
            recommendations=(
                network_evaluator.recommendations(network)
                + self.metadata_evaluator.recommendations(metadata)
            ),
        )

    async def evaluate(self, facts: InstanceFacts) -> InstanceReport:
        """Score one instance and log the outcome"""
        await self.start()

        # Pattern matching is CPU-bound; keep it off the event loop
        report = await asyncio.to_thread(self.score, facts)

        await self.logger.log_policy_analysis(report.policy_analysis, domain=report.domain)
        await self.logger.log_instance_scored(report)

        return report

    async def analyze_policies(
        self,
        rules: Sequence[Union[ModerationRule, str]],
        domain: Optional[str] = None
    ) -> PolicyAnalysisResult:
        """Classify moderation rules on their own and log the analysis"""
        await self.start()

        result = await asyncio.to_thread(self.classifier.analyze, rules)
        await self.logger.log_policy_analysis(result, domain=domain)

        return result
