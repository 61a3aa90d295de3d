"""
Unit tests for moderation policy classification.

Tests:
- Negation frames (prohibition vs true negation) and effective weights
- Empty, covenant and denied-protection scenarios
- Aggregation, normalization and confidence bounds
- Coverage, explainability and malformed pattern handling
"""
import time

import pytest

from fedtrust.detection.negation import NegationFrame, classify_frame, effective_weight
from fedtrust.detection.policy_classifier import NO_POLICIES_FLAG, PolicyTextClassifier
from fedtrust.detection.rule_library import RuleLibrary
from fedtrust.schemas import MatchedSignal, ModerationRule, RulePattern


@pytest.fixture(scope="module")
def library():
    return RuleLibrary()


@pytest.fixture(scope="module")
def classifier(library):
    return PolicyTextClassifier(library)


def rules(*texts):
    return [ModerationRule(id=str(i), text=text) for i, text in enumerate(texts, 1)]


def signal(category, subcategory, weight, language="en"):
    return MatchedSignal(
        category=category,
        subcategory=subcategory,
        weight=weight,
        matched_text=subcategory,
        context=subcategory,
        is_negated=False,
        language=language,
        pattern_used=subcategory,
    )


class TestNegationFrames:
    """Test classification of the text preceding a match."""

    def test_prohibition_frame(self, library):
        """Test "no X" bans the behavior."""
        rule = library.get("protected_class", "race")
        assert classify_frame("no ", rule) is NegationFrame.PROHIBITION

    def test_banned_prefix_is_prohibition(self, library):
        """Test "Banned: X" bans the behavior."""
        rule = library.get("hate_speech", "general_ban")
        assert classify_frame("banned: ", rule) is NegationFrame.PROHIBITION

    def test_denied_protection_is_true_negation(self, library):
        """Test "no policy protecting X" denies a protection."""
        rule = library.get("protected_class", "gender_identity")
        assert classify_frame("we have no policy protecting ", rule) is NegationFrame.TRUE_NEGATION

    def test_except_is_true_negation(self, library):
        """Test exception clauses."""
        rule = library.get("protected_class", "religion")
        assert classify_frame("all groups are protected except ", rule) is NegationFrame.TRUE_NEGATION

    def test_german_denied_protection(self, library):
        """Test German "kein Schutz für"."""
        rule = library.get("protected_class", "sexual_orientation")
        assert classify_frame("es gibt keinen schutz für ", rule) is NegationFrame.TRUE_NEGATION

    def test_positive_indicator_never_prohibition(self, library):
        """Test prohibition frames only apply to safety categories."""
        rule = library.get("positive", "appeals_process")
        assert classify_frame("no ", rule) is NegationFrame.NONE

    def test_red_flag_uses_short_window(self, library):
        """Test red flags ignore negation further back than 20 characters."""
        red_flag = library.get("red_flag", "free_speech_absolutism")
        positive = library.get("protected_class", "race")
        preceding = "unless" + " " * 30

        assert classify_frame(preceding, red_flag) is NegationFrame.NONE
        assert classify_frame(preceding, positive) is NegationFrame.TRUE_NEGATION

    def test_plain_text_has_no_frame(self, library):
        """Test ordinary preceding text."""
        rule = library.get("harassment", "general_ban")
        assert classify_frame("please report ", rule) is NegationFrame.NONE


class TestEffectiveWeight:
    """Test weight adjustment after negation."""

    def test_negated_red_flag_becomes_positive(self, library):
        """Test abs(w) * 0.5 for a negated red flag."""
        rule = library.get("red_flag", "free_speech_absolutism")
        assert effective_weight(rule, NegationFrame.TRUE_NEGATION) == 5.0

    def test_negated_positive_becomes_negative(self, library):
        """Test -w * 0.5 for a negated positive pattern."""
        rule = library.get("protected_class", "gender_identity")
        assert effective_weight(rule, NegationFrame.TRUE_NEGATION) == -1.5

    def test_prohibition_keeps_weight(self, library):
        """Test prohibition leaves the weight unchanged."""
        rule = library.get("harassment", "general_ban")
        assert effective_weight(rule, NegationFrame.PROHIBITION) == 5.0
        assert effective_weight(rule, NegationFrame.NONE) == 5.0

    def test_magnitude_never_grows(self, library):
        """Test negation never amplifies any pattern."""
        for rule in library.patterns:
            for frame in NegationFrame:
                assert abs(effective_weight(rule, frame)) <= abs(rule.weight)


class TestScenarios:
    """Test the documented end-to-end scenarios."""

    def test_empty_rule_list(self, classifier):
        """Test no rules yields a zero score and a descriptive flag."""
        result = classifier.analyze([])

        assert result.raw_score == 0
        assert result.normalized_score == 0
        assert result.meets_minimum is False
        assert result.matched_signals == []
        assert NO_POLICIES_FLAG in result.flags

    def test_blank_rules_count_as_empty(self, classifier):
        """Test whitespace-only rules."""
        result = classifier.analyze(rules("   ", ""))
        assert NO_POLICIES_FLAG in result.flags
        assert result.normalized_score == 0

    def test_covenant_sentence(self, classifier):
        """Test a single sentence naming all four covenant areas."""
        result = classifier.analyze(rules("No racism, sexism, homophobia, or transphobia will be tolerated."))
        covenant = result.covenant_alignment

        assert covenant.has_racism_policy
        assert covenant.has_sexism_policy
        assert covenant.has_homophobia_policy
        assert covenant.has_transphobia_policy
        assert covenant.meets_requirements is True
        assert covenant.score == 100
        assert covenant.missing_areas() == []

    def test_prohibition_keeps_signal_positive(self, classifier):
        """Test "No racism" is a positive race signal."""
        result = classifier.analyze(rules("No racism, sexism, homophobia, or transphobia will be tolerated."))
        race = [s for s in result.matched_signals if s.subcategory == "race"]

        assert race
        assert all(not s.is_negated and s.weight > 0 for s in race)

    def test_denied_protection(self, classifier):
        """Test "no policy protecting trans users" inverts the signal."""
        result = classifier.analyze(rules("We have no policy protecting trans users."))
        gender = [s for s in result.matched_signals if s.subcategory == "gender_identity"]

        assert gender
        assert all(s.is_negated for s in gender)
        assert all(s.weight < 0 for s in gender)
        assert result.raw_score == 0
        assert result.covenant_alignment.has_transphobia_policy is False
        assert "Gender Identity" in result.missing_categories
        assert any("transphobia" in w for w in result.weaknesses)

    def test_idempotence(self, classifier):
        """Test identical input yields identical output."""
        policy = rules(
            "Harassment, dogpiling and doxxing are banned.",
            "You may appeal any moderation decision.",
            "Free speech is absolute here.",
        )
        first = classifier.analyze(policy)
        second = classifier.analyze(policy)
        assert first.model_dump() == second.model_dump()


class TestScoring:
    """Test aggregation, normalization and confidence."""

    def test_duplicate_collapse(self, classifier):
        """Test repeated matches of one key count once."""
        result = classifier.analyze(rules("Harassment. Harassment. Harassment."))
        assert result.raw_score == 5.0

    def test_aggregate_keeps_highest_weight(self):
        """Test collapse keeps the higher of two weights per key."""
        matches = [
            signal("protected_class", "race", 1.5),
            signal("protected_class", "race", 3.0),
            signal("privacy", "doxxing_ban", 5.0),
        ]
        assert PolicyTextClassifier.aggregate(matches) == 8.0

    def test_aggregate_floors_at_zero(self):
        """Test red flags cannot push the raw score below zero."""
        assert PolicyTextClassifier.aggregate([signal("red_flag", "hostile_framing", -15)]) == 0.0
        assert PolicyTextClassifier.aggregate([]) == 0.0

    @pytest.mark.parametrize("raw,expected", [
        (0, 0.0),
        (-3, 0.0),
        (4, 4.0),
        (8, 8.0),
        (20, 15.0),
        (40, 25.0),
        (55, 31.25),
        (70, 37.5),
        (500, 37.5),
    ])
    def test_normalize_breakpoints(self, classifier, raw, expected):
        """Test the piecewise-linear map at and between breakpoints."""
        assert classifier.normalize(raw) == pytest.approx(expected)

    def test_normalize_strictly_increasing(self, classifier):
        """Test the map is strictly increasing below the ceiling."""
        values = [classifier.normalize(x / 2) for x in range(0, 141)]
        for lower, higher in zip(values, values[1:]):
            assert higher > lower

    def test_normalize_continuous(self, classifier):
        """Test no jump at any breakpoint."""
        for x in (8, 20, 40, 70):
            assert classifier.normalize(x + 1e-9) == pytest.approx(classifier.normalize(x - 1e-9), abs=1e-6)

    def test_adding_positive_rule_never_decreases(self, classifier):
        """Test monotonicity when a new positive match is added."""
        base = classifier.analyze(rules("Harassment is not allowed."))
        more = classifier.analyze(rules("Harassment is not allowed.", "Doxxing is banned."))

        assert more.raw_score >= base.raw_score
        assert more.normalized_score >= base.normalized_score

    def test_adding_true_negation_never_increases(self, classifier):
        """Test monotonicity when an existing protection is also denied."""
        base = classifier.analyze(rules("Transgender members are protected."))
        more = classifier.analyze(rules(
            "Transgender members are protected.",
            "We have no policy protecting trans users.",
        ))

        assert more.raw_score <= base.raw_score

    @pytest.mark.parametrize("unit", ["gender ", "no ", "free speech "])
    def test_worst_case_input_at_cap_is_fast(self, classifier, unit):
        """Test repeated gap-pattern prefixes at the size cap are matched in linear time."""
        text = (unit * (classifier.max_chars // len(unit) + 1))[:classifier.max_chars]

        started = time.perf_counter()
        result = classifier.analyze([ModerationRule(id="1", text=text)])
        elapsed = time.perf_counter() - started

        assert elapsed < 3.0
        assert 0 <= result.normalized_score <= 37.5

    def test_gap_longer_than_limit_does_not_match(self):
        """Test words separated by more than the gap limit are not one match."""
        classifier = PolicyTextClassifier(RuleLibrary(gap_limit=10))
        near = classifier.match_patterns("Respect gender identity.", ["en"])
        far = classifier.match_patterns("Respect gender and, in every single case, identity.", ["en"])

        assert "gender.*identity" in [m.pattern_used for m in near]
        assert "gender.*identity" not in [m.pattern_used for m in far]

    def test_oversized_input_is_bounded(self, classifier):
        """Test adversarially large input is truncated and stays in range."""
        result = classifier.analyze(rules("Harassment is banned. " * 3000))

        assert any("truncated" in flag for flag in result.flags)
        assert 0 <= result.normalized_score <= 37.5
        assert 0 <= result.confidence <= 100

    def test_confidence_bounds(self, classifier):
        """Test confidence stays within [0, 100] at both extremes."""
        assert PolicyTextClassifier.confidence("", []) == 30
        assert PolicyTextClassifier.confidence("", [signal("red_flag", "sjw", -15)]) == 15

        many = [signal("positive", f"p{i}", 2, language) for i in range(30) for language in ("en", "de", "fr", "es")]
        assert PolicyTextClassifier.confidence("x" * 5000, many) == 100


class TestCoverage:
    """Test coverage lists, covenant discrimination and narration."""

    def test_core_categories_and_minimum(self, classifier):
        """Test meets_minimum with four core categories."""
        result = classifier.analyze(rules("Harassment, hate speech, doxxing and spam are banned."))

        for category in ("harassment", "hate_speech", "privacy", "spam"):
            assert category in result.categories_covered
        assert result.meets_minimum is True

    def test_below_minimum(self, classifier):
        """Test a single category does not meet the minimum."""
        result = classifier.analyze(rules("Spam is banned."))
        assert result.meets_minimum is False

    def test_umbrella_covers_critical_category(self, classifier):
        """Test broad anti-hate language satisfies the hate speech gap."""
        result = classifier.analyze(rules("Bigotry has no place here."))
        assert "Hate Speech" not in result.missing_categories

    def test_sexism_without_transphobia(self, classifier):
        """Test matched-text discrimination inside the gender class."""
        result = classifier.analyze(rules("Misogyny is not tolerated."))

        assert result.covenant_alignment.has_sexism_policy is True
        assert result.covenant_alignment.has_transphobia_policy is False
        assert result.covenant_alignment.score == 25

    def test_transphobia_without_sexism(self, classifier):
        """Test a trans-only rule in the gender class does not also cover sexism."""
        result = classifier.analyze(rules("No transphobia."))

        assert result.covenant_alignment.has_transphobia_policy is True
        assert result.covenant_alignment.has_sexism_policy is False
        assert result.covenant_alignment.score == 25

    def test_red_flag_detected(self, classifier):
        """Test an active red flag is reported as a weakness."""
        result = classifier.analyze(rules("Free speech is absolute here."))

        assert result.red_flags == ["free_speech_absolutism"]
        assert result.raw_score == 0
        assert any("Free speech absolutism" in w for w in result.weaknesses)

    def test_appeals_strength_and_suggestion(self, classifier):
        """Test positive indicators become strengths, absent ones suggestions."""
        with_appeals = classifier.analyze(rules("You may appeal any moderation decision."))
        without = classifier.analyze(rules("Spam is banned."))

        assert "appeals_process" in with_appeals.positive_indicators
        assert "Clear appeals process for moderation decisions" in with_appeals.strengths
        assert any("appeals process" in s for s in without.suggestions)

    def test_german_rules(self, classifier):
        """Test German variants match German text."""
        result = classifier.analyze(rules("Keine Belästigung und keine Hassrede."))

        assert "de" in result.detected_languages
        assert "harassment" in result.categories_covered
        assert "hate_speech" in result.categories_covered

    def test_context_window(self, classifier):
        """Test context is trimmed text around the match."""
        text = "Members must treat each other kindly. Doxxing of any member is banned."
        result = classifier.analyze(rules(text))
        doxxing = [s for s in result.matched_signals if s.category == "privacy"][0]

        assert doxxing.matched_text == "Doxxing"
        assert "Doxxing" in doxxing.context
        assert len(doxxing.context) <= len("Doxxing") + 60
        assert doxxing.context == doxxing.context.strip()


class TestMalformedPatternsInAnalysis:
    """Test a skipped pattern never aborts classification."""

    def test_diagnostics_reported(self):
        """Test analysis proceeds with the remaining patterns."""
        rule = RulePattern(
            category="harassment",
            subcategory="general_ban",
            label="Harassment",
            weight=5,
            patterns={"en": ("harass(", "harass")},
            is_positive=True,
        )
        classifier = PolicyTextClassifier(RuleLibrary([rule]))

        result = classifier.analyze(rules("Harassment is banned."))

        assert len(result.diagnostics) == 1
        assert result.categories_covered == ["harassment"]
        assert result.raw_score == 5.0
