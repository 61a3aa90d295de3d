"""
Network Health

Federation size, curated reputation, blocking behavior and external
blocklist reciprocity, scored against read-only reference snapshots.
"""
from typing import Dict, List, Optional, Tuple

import config
from fedtrust.schemas import (
    FederationPercentiles,
    InstanceFacts,
    NetworkHealthBreakdown,
    NetworkHealthDetails,
    NetworkHealthResult,
    ReputationSnapshot,
    Severity,
)


DEGRADED_FLAG = "Network health scoring unavailable - using default values"
ISOLATED_FLAG = "No federation - instance is isolated"


class NetworkHealthEvaluator:
    """
    Score network health on a 0-25 scale.

    Components:
    - federation_health (0-10): peer count percentile tier
    - reputation (0-8): trusted / neutral / problematic
    - blocking_behavior (0-4): share of known instances blocked
    - reciprocity (0-3): warning/critical hits on external blocklists

    Snapshots are injected; when either is missing the documented
    defaults are returned with a flag instead of raising.
    """

    def __init__(
        self,
        percentiles: Optional[FederationPercentiles] = None,
        reputation: Optional[ReputationSnapshot] = None,
        size_points: List[Tuple[str, int, int]] = None,
        reputation_points: Dict[str, int] = None,
        block_ratio_buckets: List[Tuple[float, int]] = None
    ):
        self.percentiles = percentiles
        self.reputation = reputation
        self.size_points = size_points or config.FEDERATION_SIZE_POINTS
        self.reputation_points = reputation_points or config.REPUTATION_POINTS
        self.block_ratio_buckets = block_ratio_buckets or config.BLOCK_RATIO_BUCKETS

    def evaluate(self, facts: InstanceFacts) -> NetworkHealthResult:
        """
        Calculate the network health score.

        Args:
            facts: Validated instance facts

        Returns:
            NetworkHealthResult (degraded=True when snapshots are missing)
        """
        if self.percentiles is None or self.reputation is None:
            return self.degraded(facts)

        flags: List[str] = []

        federation, percentile = self._score_federation(facts.effective_peer_count, flags)
        reputation, level = self._score_reputation(facts.domain, flags)
        blocking, block_count, block_ratio = self._score_blocking(facts, flags)
        reciprocity, blocked_by = self._score_reciprocity(facts, flags)

        breakdown = NetworkHealthBreakdown(
            federation_health=federation,
            reputation=reputation,
            blocking_behavior=blocking,
            reciprocity=reciprocity,
        )

        return NetworkHealthResult(
            total_score=federation + reputation + blocking + reciprocity,
            breakdown=breakdown,
            details=NetworkHealthDetails(
                peer_count=facts.effective_peer_count,
                peer_percentile=percentile,
                reputation_level=level,
                block_count=block_count,
                block_ratio=block_ratio,
                blocked_by_count=blocked_by,
                is_widely_blocked=blocked_by >= config.WIDELY_BLOCKED_THRESHOLD,
            ),
            flags=flags,
        )

    def degraded(self, facts: Optional[InstanceFacts] = None) -> NetworkHealthResult:
        """Fixed neutral-ish defaults used when reference data is unavailable"""
        defaults = config.NETWORK_DEGRADED_DEFAULTS
        details = NetworkHealthDetails()
        if facts is not None:
            details = NetworkHealthDetails(
                peer_count=facts.effective_peer_count,
                block_count=len(facts.blocked_instances or []),
            )

        return NetworkHealthResult(
            total_score=sum(defaults.values()),
            breakdown=NetworkHealthBreakdown(**defaults),
            details=details,
            flags=[DEGRADED_FLAG],
            degraded=True,
        )

    # ==================== Components ====================

    def _score_federation(self, peer_count: int, flags: List[str]) -> Tuple[int, int]:
        """Federation size tier (0-10) and the percentile reached"""
        if peer_count <= 0:
            flags.append(ISOLATED_FLAG)
            return 0, 0

        for name, percentile, points in self.size_points:
            if peer_count >= getattr(self.percentiles, name):
                if percentile == 95:
                    flags.append(f"Excellent federation (top 5%, {peer_count:,} peers)")
                elif percentile == 90:
                    flags.append(f"Very good federation (top 10%, {peer_count:,} peers)")
                return points, percentile

        flags.append(f"Limited federation (bottom 25%, {peer_count:,} peers)")
        return config.FEDERATION_SIZE_FLOOR_POINTS, 10

    def _score_reputation(self, domain: str, flags: List[str]) -> Tuple[int, str]:
        level, entry = self.reputation.lookup(domain)

        if level == "trusted":
            flags.append(f"Trusted instance: {(entry and entry.reason) or 'Community verified'}")
        elif level == "problematic":
            flags.append(f"Problematic instance: {(entry and entry.reason) or 'Known issues'}")

        return self.reputation_points.get(level, self.reputation_points["neutral"]), level

    def _score_blocking(self, facts: InstanceFacts, flags: List[str]) -> Tuple[int, int, Optional[float]]:
        """Blocking behavior (0-4), block count and block ratio in percent"""
        if facts.blocked_instances is None:
            return config.BLOCKING_NOT_EXPOSED_POINTS, 0, None

        block_count = len(facts.blocked_instances)
        peers = facts.effective_peer_count

        if block_count == 0:
            if peers > config.LARGE_INSTANCE_PEERS:
                flags.append("Large instance with no blocks listed")
                return config.BLOCKING_EMPTY_LARGE_POINTS, 0, 0.0
            return config.BLOCKING_EMPTY_POINTS, 0, 0.0

        ratio = block_count / (peers + block_count) * 100

        for upper, points in self.block_ratio_buckets:
            if ratio < upper:
                if points == 4:
                    flags.append(f"Low blocking activity ({ratio:.1f}%)")
                elif points == 2:
                    flags.append(f"Moderate blocking activity ({ratio:.1f}%)")
                elif points == 1:
                    flags.append(f"High blocking activity ({ratio:.1f}%)")
                return points, block_count, ratio

        flags.append(f"Very high blocking activity ({ratio:.1f}%)")
        return 0, block_count, ratio

    def _score_reciprocity(self, facts: InstanceFacts, flags: List[str]) -> Tuple[int, int]:
        """Reciprocity (0-3) and the number of warning/critical hits"""
        blocked_by = sum(
            1 for match in facts.blocklist_matches
            if match.severity in (Severity.WARNING, Severity.CRITICAL)
        )

        if blocked_by == 0:
            return 3, 0
        if blocked_by == 1:
            flags.append("Found on 1 blocklist - review recommended")
            return 2, 1
        if blocked_by < config.WIDELY_BLOCKED_THRESHOLD:
            flags.append(f"Found on {blocked_by} blocklists - reputation concerns")
            return 1, blocked_by

        flags.append(f"Found on {blocked_by} blocklists - serious reputation issues")
        return 0, blocked_by

    # ==================== Narration ====================

    @staticmethod
    def summarize(result: NetworkHealthResult) -> str:
        total = result.total_score
        if total >= 20:
            return "Excellent network health - well-connected, trusted, and balanced moderation"
        elif total >= 15:
            return "Good network health - solid federation and reputation"
        elif total >= 10:
            return "Fair network health - adequate connections with some concerns"
        elif total >= 5:
            return "Limited network health - poor federation or reputation issues"
        return "Poor network health - isolated, untrusted, or widely blocked"

    @staticmethod
    def recommendations(result: NetworkHealthResult) -> List[str]:
        """Improvement suggestions; empty for degraded results"""
        if result.degraded:
            return []

        recommendations = []
        breakdown, details = result.breakdown, result.details

        if breakdown.federation_health < 5:
            recommendations.append("Improve federation by connecting with more instances")
            recommendations.append("Review and adjust federation policies to encourage peering")

        if breakdown.reputation == 0:
            recommendations.append("Address reported issues to improve instance reputation")
            recommendations.append("Engage with community to understand concerns")

        if breakdown.blocking_behavior <= 2:
            if (details.block_ratio or 0) > 20:
                recommendations.append(
                    "Review blocking policies - very high block rate may indicate over-moderation"
                )
            elif details.block_count == 0 and details.peer_count > config.LARGE_INSTANCE_PEERS and details.block_ratio is not None:
                recommendations.append("Consider implementing selective blocking for problematic instances")

        if details.is_widely_blocked:
            recommendations.append(
                "Critical: Instance is widely blocked - immediate review of moderation policies needed"
            )
            recommendations.append("Contact instance administrators who have blocked you to understand concerns")

        return recommendations
