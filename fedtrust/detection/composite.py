"""
Composite Safety Score

Combines reachability, moderation, federation visibility and trust into a
single 0-100 score with per-axis breakdown and flags.
"""
import math
from typing import List, Tuple

import config
from fedtrust.detection.policy_classifier import NO_POLICIES_FLAG
from fedtrust.schemas import (
    CompositeSafetyScore,
    InstanceFacts,
    PolicyAnalysisResult,
    SafetyBreakdown,
    Severity,
)


class CompositeScoreAggregator:
    """
    Aggregate axis scores into the overall trust score.

    overall = uptime + min(moderation, 25) + federation + trust - error_penalty

    - uptime: 25 when the instance API is reachable, else 0
    - moderation: normalized policy score (0-37.5 shown, 25 counted)
    - federation: 25 with a public peer list, else partial credit
    - trust: 25, 10 on a warning blocklist hit, 0 on a critical hit;
      covenant members get +5 (capped) unless a critical hit exists
    """

    def __init__(
        self,
        axis_max: int = config.AXIS_MAX,
        federation_partial: int = config.FEDERATION_PARTIAL_CREDIT,
        covenant_bonus: int = config.COVENANT_BONUS
    ):
        self.axis_max = axis_max
        self.federation_partial = federation_partial
        self.covenant_bonus = covenant_bonus

    def compute(self, facts: InstanceFacts, policy: PolicyAnalysisResult) -> CompositeSafetyScore:
        """
        Calculate the composite safety score.

        Args:
            facts: Validated instance facts
            policy: Result of PolicyTextClassifier.analyze on facts.rules

        Returns:
            CompositeSafetyScore with overall in [0, 100]
        """
        flags: List[str] = []

        uptime = self.axis_max if facts.reachable else 0
        if not facts.reachable:
            flags.append("Instance API unreachable")

        moderation = policy.normalized_score
        if not facts.rules or NO_POLICIES_FLAG in policy.flags:
            flags.append(NO_POLICIES_FLAG)

        if facts.effective_peer_count > 0:
            federation = self.axis_max
        else:
            federation = self.federation_partial
            flags.append("Peer list not publicly available")

        trust = self._score_trust(facts, flags)

        errors = facts.collection_error_count
        penalty = min(errors * config.ERROR_PENALTY_PER_ERROR, config.ERROR_PENALTY_CAP)
        if errors:
            flags.append(f"Data collection errors: {errors}")

        total = uptime + min(moderation, self.axis_max) + federation + trust - penalty
        overall = max(0, min(100, int(math.floor(total + 0.5))))

        return CompositeSafetyScore(
            overall=overall,
            breakdown=SafetyBreakdown(
                uptime=uptime,
                moderation=moderation,
                federation=federation,
                trust=trust,
            ),
            flags=flags,
        )

    def _score_trust(self, facts: InstanceFacts, flags: List[str]) -> int:
        severities = {match.severity for match in facts.blocklist_matches}

        if Severity.CRITICAL in severities:
            flags.append("Found on critical blocklists")
            return config.TRUST_CRITICAL_SCORE

        trust = self.axis_max
        if Severity.WARNING in severities:
            flags.append("Found on warning blocklists")
            trust = config.TRUST_WARNING_SCORE

        if facts.covenant_member:
            trust = min(trust + self.covenant_bonus, self.axis_max)

        return trust


def score_label(overall: int) -> Tuple[str, str]:
    """Return (label, tone) for an overall score, e.g. ("Good", "success")"""
    for lower, label, tone in config.SCORE_LABELS:
        if overall >= lower:
            return label, tone
    return config.SCORE_LABELS[-1][1], config.SCORE_LABELS[-1][2]
