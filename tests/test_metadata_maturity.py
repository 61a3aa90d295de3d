"""
Unit tests for metadata maturity scoring.

Tests:
- InstanceMetadata construction from NodeInfo / security.txt
- Maturity, transparency, registration and description components
- Summary and recommendations
"""
from datetime import datetime

import pytest

from fedtrust.detection.metadata_maturity import MetadataMaturityEvaluator
from fedtrust.schemas import InstanceMetadata, ModerationRule


@pytest.fixture
def evaluator():
    return MetadataMaturityEvaluator()


class TestFromNodeInfo:
    """Test the boundary conversion of loosely-typed metadata."""

    def test_full_payload(self):
        """Test presence checks on a typical NodeInfo document."""
        node_info = {
            "openRegistrations": True,
            "usage": {"users": {"total": 1200, "activeMonth": 300}},
            "metadata": {
                "nodeName": "Example Social",
                "privacyPolicy": "https://social.example/privacy",
                "approvalRequired": True,
            },
        }
        metadata = InstanceMetadata.from_nodeinfo(
            node_info,
            security_txt={"contact": "mailto:security@social.example"},
            created_at=datetime(2026, 1, 1),
            now=datetime(2026, 3, 2),
        )

        assert metadata.has_node_info is True
        assert metadata.user_count == 1200
        assert metadata.active_month_users == 300
        assert metadata.open_registrations is True
        assert metadata.approval_required is True
        assert metadata.has_privacy_policy is True
        assert metadata.has_terms is False
        assert metadata.has_contact is True
        assert metadata.has_security_txt is True
        assert metadata.security_contacts == ("mailto:security@social.example",)
        assert metadata.metadata_field_count == 3
        assert metadata.age_days == 60

    def test_wrong_types_are_absent(self):
        """Test malformed values are treated as not published."""
        metadata = InstanceMetadata.from_nodeinfo({
            "openRegistrations": "yes",
            "usage": {"users": {"total": "lots", "activeMonth": -4}},
            "metadata": [],
        })

        assert metadata.has_node_info is True
        assert metadata.user_count is None
        assert metadata.active_month_users is None
        assert metadata.open_registrations is None
        assert metadata.metadata_field_count == 0

    def test_nothing_fetched(self):
        """Test no payloads at all."""
        metadata = InstanceMetadata.from_nodeinfo(None, None)
        assert metadata == InstanceMetadata()


class TestMaturity:
    """Test the maturity component."""

    @pytest.mark.parametrize("users,points", [
        (5, 0),
        (20, 2),
        (100, 4),
        (1000, 6),
        (10000, 8),
    ])
    def test_user_buckets(self, evaluator, users, points):
        """Test user count tiers."""
        result = evaluator.evaluate(InstanceMetadata(user_count=users))
        assert result.breakdown.maturity == points

    def test_unknown_users(self, evaluator):
        """Test missing user count gets minimal credit and a flag."""
        result = evaluator.evaluate(InstanceMetadata())

        assert result.breakdown.maturity == 2
        assert "User count not available - cannot assess maturity" in result.flags

    def test_low_activity_penalty(self, evaluator):
        """Test under 10% monthly active costs two points."""
        result = evaluator.evaluate(InstanceMetadata(user_count=1000, active_month_users=50))

        assert result.breakdown.maturity == 4
        assert any("Low user activity ratio" in flag for flag in result.flags)

    def test_low_activity_floor(self, evaluator):
        """Test the penalty never goes below zero."""
        result = evaluator.evaluate(InstanceMetadata(user_count=5, active_month_users=0))
        assert result.breakdown.maturity == 0

    def test_high_activity_flag(self, evaluator):
        """Test a healthy activity ratio is noted without points."""
        result = evaluator.evaluate(InstanceMetadata(user_count=100, active_month_users=80))

        assert result.breakdown.maturity == 4
        assert "High user activity ratio (>50% monthly active)" in result.flags

    def test_recent_instance_capped(self, evaluator):
        """Test a known age under 90 days caps maturity at 4."""
        result = evaluator.evaluate(InstanceMetadata(user_count=10000, age_days=30))

        assert result.breakdown.maturity == 4
        assert result.details.age_days == 30

    def test_estimated_age(self, evaluator):
        """Test age is estimated from the user tier when unknown."""
        result = evaluator.evaluate(InstanceMetadata(user_count=1000))
        assert result.details.age_days == 365


class TestTransparency:
    """Test the transparency component."""

    def test_everything_published(self, evaluator):
        """Test the maximum of seven points."""
        result = evaluator.evaluate(InstanceMetadata(
            has_contact=True,
            has_privacy_policy=True,
            has_terms=True,
            has_security_txt=True,
            metadata_field_count=4,
        ))
        assert result.breakdown.transparency == 7

    def test_nothing_published(self, evaluator):
        """Test missing contact and privacy policy are flagged."""
        result = evaluator.evaluate(InstanceMetadata())

        assert result.breakdown.transparency == 0
        assert "No contact information found" in result.flags
        assert "No privacy policy found" in result.flags


class TestRegistration:
    """Test the registration component."""

    def test_unknown(self, evaluator):
        """Test missing NodeInfo is neutral."""
        result = evaluator.evaluate(None)

        assert result.breakdown.registration == 2
        assert result.details.registration_policy == "unknown"

    def test_closed(self, evaluator):
        """Test closed registration scores highest."""
        result = evaluator.evaluate(InstanceMetadata(has_node_info=True, open_registrations=False))

        assert result.breakdown.registration == 5
        assert result.details.registration_policy == "closed"

    def test_approval_required(self, evaluator):
        """Test open with approval."""
        result = evaluator.evaluate(
            InstanceMetadata(has_node_info=True, open_registrations=True, approval_required=True)
        )
        assert result.breakdown.registration == 4

    def test_open_with_anti_spam_rules(self, evaluator):
        """Test rules mentioning spam or bots count as anti-spam measures."""
        metadata = InstanceMetadata(has_node_info=True, open_registrations=True)
        result = evaluator.evaluate(metadata, [ModerationRule(id="1", text="No spam or automated posting.")])

        assert result.breakdown.registration == 3
        assert result.details.registration_policy == "open-with-antispam"

    def test_fully_open(self, evaluator):
        """Test open registration without anti-spam rules."""
        metadata = InstanceMetadata(has_node_info=True, open_registrations=True)
        result = evaluator.evaluate(metadata, [ModerationRule(id="1", text="Be kind.")])

        assert result.breakdown.registration == 1
        assert result.details.registration_policy == "open"


class TestDescription:
    """Test the description component."""

    def test_missing(self, evaluator):
        """Test no description scores zero."""
        result = evaluator.evaluate(InstanceMetadata())

        assert result.breakdown.description == 0
        assert result.details.description_quality == "none"

    def test_detailed_description(self, evaluator):
        """Test length, focus and contact mentions."""
        description = "A community for people who enjoy gardening. " * 5 + "Contact the admin team anytime."
        result = evaluator.evaluate(InstanceMetadata(description=description))

        assert result.details.description_quality == "detailed"
        assert result.breakdown.description == 4

    def test_capped_at_five(self, evaluator):
        """Test every bonus together is capped."""
        description = "Eine Community für Gärtner. " * 10 + "Contact the admin."
        result = evaluator.evaluate(InstanceMetadata(description=description))
        assert result.breakdown.description == 5

    def test_minimal_description(self, evaluator):
        """Test a short plain description."""
        result = evaluator.evaluate(InstanceMetadata(description="Just a server."))

        assert result.details.description_quality == "minimal"
        assert result.breakdown.description == 0


class TestNarration:
    """Test summaries and recommendations."""

    def test_sparse_instance(self, evaluator):
        """Test a bare instance gets the full set of recommendations."""
        result = evaluator.evaluate(None)
        recommendations = MetadataMaturityEvaluator.recommendations(result)

        assert result.total_score == 4
        assert MetadataMaturityEvaluator.summarize(result).startswith("Poor")
        assert "Add a privacy policy to inform users about data handling" in recommendations
        assert "Add a security.txt file for responsible disclosure" in recommendations
        assert len(recommendations) == 7

    def test_mature_instance(self, evaluator):
        """Test a well-documented instance."""
        result = evaluator.evaluate(InstanceMetadata(
            has_node_info=True,
            user_count=10000,
            open_registrations=False,
            has_contact=True,
            has_privacy_policy=True,
            has_terms=True,
            has_security_txt=True,
            metadata_field_count=6,
            description="A dedicated community for researchers. " * 6 + "Email support@example.org. À bientôt.",
        ))

        assert result.total_score == 25
        assert MetadataMaturityEvaluator.summarize(result).startswith("Excellent")
        assert MetadataMaturityEvaluator.recommendations(result) == []
