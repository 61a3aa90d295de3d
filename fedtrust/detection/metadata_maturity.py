"""
Metadata Maturity

Instance maturity, administrative transparency, registration policy and
description quality from published NodeInfo / security.txt metadata.
"""
import re
from typing import List, Optional, Sequence, Tuple, Union

import config
from fedtrust.schemas import (
    InstanceMetadata,
    MetadataMaturityBreakdown,
    MetadataMaturityDetails,
    MetadataMaturityResult,
    ModerationRule,
)


ANTI_SPAM_PATTERN = re.compile(r"spam|bot|automat", re.IGNORECASE)
FOCUS_PATTERN = re.compile(r"community|focus|topic|interest|group|dedicated|speciali[sz]ed", re.IGNORECASE)
CONTACT_PATTERN = re.compile(r"admin|contact|email|support", re.IGNORECASE)
NON_ASCII_PATTERN = re.compile(r"[^\x00-\x7F]")


class MetadataMaturityEvaluator:
    """
    Score metadata maturity on a 0-25 scale.

    Components:
    - maturity (0-8): user count tier, activity ratio, known age
    - transparency (0-7): contact, privacy policy, terms, security.txt
    - registration (0-5): closed > approval > open with anti-spam > open
    - description (0-5): length, language, focus and contact mentions
    """

    def __init__(
        self,
        user_buckets: List[Tuple[int, int, int]] = None,
        registration_points: dict = None
    ):
        self.user_buckets = user_buckets or config.USER_COUNT_BUCKETS
        self.registration_points = registration_points or config.REGISTRATION_POINTS

    def evaluate(
        self,
        metadata: Optional[InstanceMetadata],
        rules: Sequence[Union[ModerationRule, str]] = ()
    ) -> MetadataMaturityResult:
        """
        Calculate the metadata maturity score.

        Args:
            metadata: Profile metadata (None when nothing was fetched)
            rules: Published moderation rules, checked for anti-spam wording

        Returns:
            MetadataMaturityResult
        """
        metadata = metadata or InstanceMetadata()
        flags: List[str] = []

        maturity, age_days = self._score_maturity(metadata, flags)
        transparency = self._score_transparency(metadata, flags)
        registration, policy = self._score_registration(metadata, rules, flags)
        description, length, quality = self._score_description(metadata.description, flags)

        return MetadataMaturityResult(
            total_score=maturity + transparency + registration + description,
            breakdown=MetadataMaturityBreakdown(
                maturity=maturity,
                transparency=transparency,
                registration=registration,
                description=description,
            ),
            details=MetadataMaturityDetails(
                age_days=age_days,
                user_count=metadata.user_count,
                has_privacy_policy=metadata.has_privacy_policy,
                has_terms=metadata.has_terms,
                has_contact=metadata.has_contact,
                has_security_contact=metadata.has_security_txt,
                registration_policy=policy,
                description_length=length,
                description_quality=quality,
            ),
            flags=flags,
        )

    def _score_maturity(self, metadata: InstanceMetadata, flags: List[str]) -> Tuple[int, Optional[int]]:
        """Maturity points (0-8) and the known or estimated age in days"""
        users = metadata.user_count
        age_days = None

        if users is None:
            score = config.UNKNOWN_USERS_POINTS
            flags.append("User count not available - cannot assess maturity")
        else:
            score, age_days = config.USER_COUNT_TOP
            for upper, points, estimated_age in self.user_buckets:
                if users < upper:
                    score, age_days = points, estimated_age
                    break

            if users < self.user_buckets[0][0]:
                flags.append(f"Very small instance (<{self.user_buckets[0][0]} users) - limited track record")
            elif score == config.USER_COUNT_TOP[0]:
                flags.append(f"Large, established instance ({self.user_buckets[-1][0]}+ users)")

        if users and metadata.active_month_users is not None:
            ratio = metadata.active_month_users / users
            if ratio > 0.5:
                flags.append("High user activity ratio (>50% monthly active)")
            elif ratio < 0.1:
                flags.append("Low user activity ratio (<10% monthly active) - possible inactive instance")
                score = max(0, score - config.LOW_ACTIVITY_PENALTY)

        if metadata.age_days is not None:
            age_days = metadata.age_days
            if age_days < config.RECENT_INSTANCE_DAYS:
                if score > config.RECENT_INSTANCE_MATURITY_CAP:
                    score = config.RECENT_INSTANCE_MATURITY_CAP
                flags.append(f"Recently created instance (<{config.RECENT_INSTANCE_DAYS} days)")

        return score, age_days

    @staticmethod
    def _score_transparency(metadata: InstanceMetadata, flags: List[str]) -> int:
        score = 0

        if metadata.has_contact:
            score += 2
        else:
            flags.append("No contact information found")

        if metadata.has_privacy_policy:
            score += 2
        else:
            flags.append("No privacy policy found")

        if metadata.has_terms:
            score += 1

        if metadata.has_security_txt:
            score += 1
            flags.append("Has security.txt file")

        # Any published metadata implies some openness
        if metadata.metadata_field_count > 0:
            score += 1

        return score

    def _score_registration(
        self,
        metadata: InstanceMetadata,
        rules: Sequence[Union[ModerationRule, str]],
        flags: List[str]
    ) -> Tuple[int, str]:
        if not metadata.has_node_info or metadata.open_registrations is None:
            flags.append("Registration policy unknown")
            policy = "unknown"
        elif not metadata.open_registrations:
            flags.append("Closed/invite-only registration - careful user selection")
            policy = "closed"
        elif metadata.approval_required:
            flags.append("Open registration with approval required")
            policy = "approval-required"
        else:
            texts = (r.text if isinstance(r, ModerationRule) else str(r) for r in rules or ())
            if any(ANTI_SPAM_PATTERN.search(text) for text in texts):
                flags.append("Open registration with anti-spam policies")
                policy = "open-with-antispam"
            else:
                flags.append("Open registration without clear anti-spam measures")
                policy = "open"

        return self.registration_points[policy], policy

    @staticmethod
    def _score_description(description: Optional[str], flags: List[str]) -> Tuple[int, int, str]:
        """Description points (0-5), length and quality label"""
        description = description or ""
        length = len(description)

        if length == 0:
            flags.append("No instance description found")
            return 0, 0, "none"

        score = 0
        if length > 200:
            score += 2
            quality = "detailed"
        elif length > 100:
            score += 1
            quality = "adequate"
        else:
            quality = "minimal"

        if NON_ASCII_PATTERN.search(description):
            score += 1
            flags.append("Multi-language description detected")

        if FOCUS_PATTERN.search(description):
            score += 1
            flags.append("Clear community focus described")

        if CONTACT_PATTERN.search(description):
            score += 1
            flags.append("Contact information included in description")

        return min(config.DESCRIPTION_MAX_POINTS, score), length, quality

    @staticmethod
    def summarize(result: MetadataMaturityResult) -> str:
        total = result.total_score
        if total >= 20:
            return "Excellent metadata quality - mature instance with strong transparency"
        elif total >= 15:
            return "Good metadata quality - established instance with adequate transparency"
        elif total >= 10:
            return "Fair metadata quality - some transparency but room for improvement"
        elif total >= 5:
            return "Limited metadata quality - minimal transparency and documentation"
        return "Poor metadata quality - very limited information available"

    @staticmethod
    def recommendations(result: MetadataMaturityResult) -> List[str]:
        recommendations = []
        breakdown, details = result.breakdown, result.details

        if breakdown.maturity < 4:
            recommendations.append("Consider building user base and community engagement over time")
        if not details.has_privacy_policy:
            recommendations.append("Add a privacy policy to inform users about data handling")
        if not details.has_terms:
            recommendations.append("Publish terms of service to set clear expectations")
        if not details.has_contact:
            recommendations.append("Provide contact information for users and administrators")
        if not details.has_security_contact:
            recommendations.append("Add a security.txt file for responsible disclosure")
        if breakdown.registration < 3:
            recommendations.append("Consider implementing approval requirements or anti-spam measures")
        if breakdown.description < 3:
            recommendations.append("Expand instance description to explain community focus and values")

        return recommendations
