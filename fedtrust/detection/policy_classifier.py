"""
Moderation Policy Classification

Multi-language pattern matching over published rules with negation
handling, duplicate collapse and a bounded display score.
"""
import re
from typing import Dict, List, Optional, Sequence, Tuple, Union

import config
from fedtrust.detection.negation import NegationFrame, classify_frame, effective_weight
from fedtrust.detection.rule_library import RuleLibrary
from fedtrust.schemas import CovenantAlignment, MatchedSignal, ModerationRule, PolicyAnalysisResult
from fedtrust.utils.language import detect_languages


NO_POLICIES_FLAG = "No public moderation policies found"

# Critical areas reported as missing; umbrella matches count for the first two
CRITICAL_COVERAGE: List[Tuple[str, Tuple[Tuple[str, str], ...]]] = [
    ("Harassment", (("harassment", "general_ban"), ("umbrella", "harassment_general"))),
    ("Hate Speech", (("hate_speech", "general_ban"), ("umbrella", "hate_speech_general"))),
    ("Privacy/Doxxing", (("privacy", "doxxing_ban"),)),
    ("Gender Identity", (("protected_class", "gender_identity"),)),
    ("Sexual Orientation", (("protected_class", "sexual_orientation"),)),
    ("Race", (("protected_class", "race"),)),
]

# Matched-text discriminators for the four covenant areas
RACISM_TEXT = re.compile(r"racis|racial|race|rassis|raza|人種", re.IGNORECASE)
SEXISM_TEXT = re.compile(r"sexis|misogyn|gender|\bsex|geschlecht|genre|género|性差別|女性嫌悪|性別", re.IGNORECASE)
HOMOPHOBIA_TEXT = re.compile(r"homophob|homofob|gay|lesbian|lgbt|sexual.*orientation|ホモフォビア", re.IGNORECASE)
TRANSPHOBIA_TEXT = re.compile(
    r"trans|binar|binär|gender.*identit|gender.*expression|cisgender|gender.*diverse|"
    r"identité.*genre|expression.*genre|identidad.*género|expresión.*género|"
    r"geschlechts(?:identität|ausdruck)|性自認|性表現|トランス|ノンバイナリー",
    re.IGNORECASE,
)

# area -> [(category, subcategory or None for any, required matched-text regex or None)]
COVENANT_AREAS = {
    "racism": [
        ("protected_class", "race", None),
        ("hate_speech", None, RACISM_TEXT),
    ],
    "sexism": [
        ("protected_class", "gender_identity", SEXISM_TEXT),
        ("hate_speech", None, SEXISM_TEXT),
        ("harassment", None, SEXISM_TEXT),
    ],
    "homophobia": [
        ("protected_class", "sexual_orientation", None),
        ("hate_speech", None, HOMOPHOBIA_TEXT),
    ],
    "transphobia": [
        ("protected_class", "gender_identity", TRANSPHOBIA_TEXT),
        ("hate_speech", None, TRANSPHOBIA_TEXT),
    ],
}

RED_FLAG_WEAKNESSES = {
    "free_speech_absolutism": "Free speech absolutism language suggests minimal moderation",
    "hostile_framing": "Hostile framing toward protected groups detected",
    "discrimination_allowed": "Policy language appears to permit discrimination",
    "vague_absent": "Rules are vague and lack specific guidance",
}

MISSING_WEAKNESSES = {
    "Harassment": "No explicit anti-harassment policy found",
    "Hate Speech": "No explicit hate speech policy found",
    "Privacy/Doxxing": "No doxxing or privacy protection policy found",
}

POSITIVE_STRENGTHS = {
    "appeals_process": "Clear appeals process for moderation decisions",
    "transparency": "Commitment to moderation transparency",
    "graduated_enforcement": "Graduated enforcement approach",
    "community_input": "Community input into moderation",
    "content_warnings": "Content warning expectations",
}


class PolicyTextClassifier:
    """
    Classify moderation rules into a weighted, explainable policy score.

    Pipeline:
    1. Join rule text and detect languages
    2. Match every compiled variant for each detected language
    3. Resolve negation frames into effective weights
    4. Collapse duplicates, sum, floor at zero, normalize to 0-37.5
    5. Derive coverage, covenant alignment, confidence and narration

    Stateless after construction; safe to share across threads.
    """

    def __init__(
        self,
        library: Optional[RuleLibrary] = None,
        context_window: int = config.CONTEXT_WINDOW,
        negation_window: int = config.NEGATION_WINDOW,
        red_flag_window: int = config.RED_FLAG_NEGATION_WINDOW,
        max_chars: int = config.MAX_POLICY_TEXT_CHARS,
        breakpoints: Optional[Sequence[Tuple[float, float]]] = None,
        base_language: str = config.BASE_LANGUAGE
    ):
        self.library = library or RuleLibrary()
        self.context_window = context_window
        self.negation_window = negation_window
        self.red_flag_window = red_flag_window
        self.max_chars = max_chars
        self.breakpoints = list(breakpoints or config.NORMALIZATION_BREAKPOINTS)
        self.base_language = base_language

    # ==================== Entry point ====================

    def analyze(self, rules: Sequence[Union[ModerationRule, str]]) -> PolicyAnalysisResult:
        """
        Analyze published moderation rules.

        Never raises for data problems: empty input, oversized input and
        malformed patterns all come back as flags or diagnostics.

        Args:
            rules: Ordered rules (ModerationRule or plain strings)

        Returns:
            PolicyAnalysisResult
        """
        texts = [rule.text if isinstance(rule, ModerationRule) else str(rule) for rule in rules or []]
        text = "\n".join(t for t in texts if t and t.strip())
        flags: List[str] = []
        diagnostics: List[str] = list(self.library.diagnostics)

        if not text:
            return self._empty_result(flags + [NO_POLICIES_FLAG], diagnostics)

        if len(text) > self.max_chars:
            text = text[:self.max_chars]
            flags.append(f"Policy text truncated to {self.max_chars} characters for analysis")

        languages = self.detect_languages(text)
        matches = self.match_patterns(text, languages, diagnostics)

        raw_score = self.aggregate(matches)
        coverage = self.coverage(matches)
        missing = self.missing_categories(matches)
        covenant = self.covenant_alignment(matches)
        strengths, weaknesses, suggestions = self.explain(matches, coverage, missing, covenant)
        total_keywords = sum(1 for m in matches if m.weight > 0)

        return PolicyAnalysisResult(
            raw_score=raw_score,
            normalized_score=self.normalize(raw_score),
            confidence=self.confidence(text, matches),
            categories_covered=coverage["categories"],
            protected_classes_covered=coverage["protected_classes"],
            positive_indicators=coverage["positive_indicators"],
            red_flags=coverage["red_flags"],
            missing_categories=missing,
            matched_signals=matches,
            detected_languages=languages,
            covenant_alignment=covenant,
            strengths=strengths,
            weaknesses=weaknesses,
            suggestions=suggestions,
            total_keywords=total_keywords,
            meets_minimum=(
                total_keywords >= config.MINIMUM_POSITIVE_MATCHES
                and len(coverage["categories"]) >= config.MINIMUM_CORE_CATEGORIES
            ),
            flags=flags,
            diagnostics=diagnostics,
        )

    def _empty_result(self, flags: List[str], diagnostics: List[str]) -> PolicyAnalysisResult:
        covenant = self.covenant_alignment([])
        strengths, weaknesses, suggestions = self.explain(
            [], self.coverage([]), self.missing_categories([]), covenant
        )
        return PolicyAnalysisResult(
            raw_score=0.0,
            normalized_score=0.0,
            confidence=0,
            missing_categories=self.missing_categories([]),
            detected_languages=[],
            covenant_alignment=covenant,
            strengths=strengths,
            weaknesses=weaknesses,
            suggestions=suggestions,
            meets_minimum=False,
            flags=flags,
            diagnostics=diagnostics,
        )

    # ==================== Matching ====================

    def detect_languages(self, text: str) -> List[str]:
        return detect_languages(text, self.base_language)

    def match_patterns(
        self,
        text: str,
        languages: Sequence[str],
        diagnostics: Optional[List[str]] = None
    ) -> List[MatchedSignal]:
        """
        Find every occurrence of every pattern variant for the given languages.

        Args:
            text: Joined rule text
            languages: Languages to match (from detect_languages)
            diagnostics: Optional list that receives execution failures

        Returns:
            MatchedSignal list in table order, then text order
        """
        signals: List[MatchedSignal] = []

        for language in languages:
            for variant in self.library.patterns_for(language):
                try:
                    found = list(variant.regex.finditer(text))
                except (re.error, RecursionError) as e:
                    if diagnostics is not None:
                        diagnostics.append(
                            f"Pattern {variant.source!r} ({variant.rule.category}/"
                            f"{variant.rule.subcategory}, {language}) failed during matching: {e}"
                        )
                    continue

                for match in found:
                    start, end = match.span()
                    if start == end:
                        continue

                    preceding = text[max(0, start - self.negation_window):start].lower()
                    frame = classify_frame(
                        preceding, variant.rule, self.negation_window, self.red_flag_window
                    )
                    context = text[max(0, start - self.context_window):end + self.context_window]

                    signals.append(MatchedSignal(
                        category=variant.rule.category,
                        subcategory=variant.rule.subcategory,
                        weight=effective_weight(variant.rule, frame),
                        matched_text=match.group(0),
                        context=context.strip(),
                        is_negated=frame is NegationFrame.TRUE_NEGATION,
                        language=language,
                        pattern_used=variant.source,
                    ))

        return signals

    # ==================== Scoring ====================

    @staticmethod
    def aggregate(matches: Sequence[MatchedSignal]) -> float:
        """Collapse by (category, subcategory) at the highest weight, sum, floor at zero"""
        best: Dict[Tuple[str, str], float] = {}
        for match in matches:
            key = (match.category, match.subcategory)
            if key not in best or match.weight > best[key]:
                best[key] = match.weight
        return max(0.0, float(sum(best.values())))

    def normalize(self, raw: float) -> float:
        """
        Map a raw score onto the 0-37.5 display range.

        Piecewise linear through the configured breakpoints, so the map is
        continuous and strictly increasing until the ceiling.
        """
        if not raw or raw <= 0:
            return 0.0

        points = self.breakpoints
        for (x0, y0), (x1, y1) in zip(points, points[1:]):
            if raw <= x1:
                return y0 + (raw - x0) * (y1 - y0) / (x1 - x0)
        return points[-1][1]

    @staticmethod
    def confidence(text: str, matches: Sequence[MatchedSignal]) -> int:
        """
        Heuristic confidence (0-100) in the analysis.

        Longer text, more matches, positive indicators and multiple
        languages raise it; active red flags lower it.
        """
        score = 50
        length = len(text or "")

        if length > 2000:
            score += 20
        elif length > 1000:
            score += 15
        elif length > 500:
            score += 10
        elif length > 200:
            score += 5
        else:
            score -= 10

        count = len(matches)
        if count > 20:
            score += 15
        elif count > 10:
            score += 10
        elif count > 5:
            score += 5
        elif count < 3:
            score -= 10

        if any(m.category == "positive" and m.weight > 0 for m in matches):
            score += 10
        if any(m.category == "red_flag" and m.weight < 0 for m in matches):
            score -= 15

        language_count = len({m.language for m in matches})
        if language_count >= 4:
            score += 20
        elif language_count == 3:
            score += 15
        elif language_count == 2:
            score += 10

        return max(0, min(100, score))

    # ==================== Coverage ====================

    @staticmethod
    def covenant_alignment(matches: Sequence[MatchedSignal]) -> CovenantAlignment:
        """Check the four covenant areas against positive-weight signals"""
        positive = [m for m in matches if m.weight > 0]

        def satisfied(area: str) -> bool:
            for category, subcategory, text_regex in COVENANT_AREAS[area]:
                for m in positive:
                    if m.category != category:
                        continue
                    if subcategory is not None and m.subcategory != subcategory:
                        continue
                    if text_regex is not None and not text_regex.search(m.matched_text):
                        continue
                    return True
            return False

        areas = {area: satisfied(area) for area in COVENANT_AREAS}
        covered = sum(areas.values())

        return CovenantAlignment(
            score=covered * 25,
            meets_requirements=covered == len(COVENANT_AREAS),
            has_racism_policy=areas["racism"],
            has_sexism_policy=areas["sexism"],
            has_homophobia_policy=areas["homophobia"],
            has_transphobia_policy=areas["transphobia"],
        )

    def coverage(self, matches: Sequence[MatchedSignal]) -> Dict[str, List[str]]:
        """
        Coverage ids in table order.

        Core safety is reported by category ("harassment"), the other
        groups by subcategory. Red flags are those still active (negative).
        """
        positive_keys = {(m.category, m.subcategory) for m in matches if m.weight > 0}
        negative_keys = {(m.category, m.subcategory) for m in matches if m.weight < 0}

        def ids(group: str, keys, attr: str) -> List[str]:
            result = []
            for rule in self.library.group(group):
                value = getattr(rule, attr)
                if rule.key in keys and value not in result:
                    result.append(value)
            return result

        return {
            "categories": ids("core_safety", positive_keys, "category"),
            "protected_classes": ids("protected_class", positive_keys, "subcategory"),
            "positive_indicators": ids("positive", positive_keys, "subcategory"),
            "red_flags": ids("red_flag", negative_keys, "subcategory"),
        }

    @staticmethod
    def missing_categories(matches: Sequence[MatchedSignal]) -> List[str]:
        covered = {(m.category, m.subcategory) for m in matches if m.weight > 0}
        return [
            label for label, keys in CRITICAL_COVERAGE
            if not any(key in covered for key in keys)
        ]

    # ==================== Explainability ====================

    def explain(
        self,
        matches: Sequence[MatchedSignal],
        coverage: Dict[str, List[str]],
        missing: List[str],
        covenant: CovenantAlignment
    ) -> Tuple[List[str], List[str], List[str]]:
        """
        Narrate the analysis.

        Returns:
            (strengths, weaknesses, suggestions)
        """
        strengths: List[str] = []
        weaknesses: List[str] = []
        suggestions: List[str] = []
        covenant_gaps = covenant.missing_areas()

        # Strengths
        if covenant.meets_requirements:
            strengths.append("Fully aligned with Fediverse Server Covenant anti-discrimination requirements")
        elif len(covenant_gaps) == 1:
            strengths.append(f"Strong Server Covenant alignment (missing: {covenant_gaps[0]})")

        categories = coverage["categories"]
        if len(categories) >= 8:
            strengths.append("Comprehensive coverage of core safety categories")
        elif len(categories) >= 5:
            strengths.append(f"Good coverage of core safety categories ({len(categories)} of 8)")

        if len(coverage["protected_classes"]) >= 5:
            strengths.append(f"Broad protected-class coverage ({len(coverage['protected_classes'])} classes)")

        for indicator in coverage["positive_indicators"]:
            if indicator in POSITIVE_STRENGTHS:
                strengths.append(POSITIVE_STRENGTHS[indicator])

        # Weaknesses
        if covenant_gaps and matches:
            weaknesses.append(
                "Server Covenant gap: missing explicit policies against " + ", ".join(covenant_gaps)
            )

        for flag in coverage["red_flags"]:
            weaknesses.append(RED_FLAG_WEAKNESSES.get(flag, f"Red flag: {self.library.label(flag)}"))

        denied = []
        for m in matches:
            if m.is_negated and m.weight < 0:
                label = self.library.get(m.category, m.subcategory).label
                if label not in denied:
                    denied.append(label)
        for label in denied:
            weaknesses.append(f"Rule text denies protection: {label}")

        for label in missing:
            weaknesses.append(MISSING_WEAKNESSES.get(label, f"No explicit protection for {label}"))

        # Suggestions
        if missing:
            suggestions.append("Consider adding explicit policies for: " + ", ".join(missing[:3]))
        if "vague_absent" in coverage["red_flags"]:
            suggestions.append("Make rules more specific with clear examples and definitions")
        if covenant_gaps:
            suggestions.append(
                "Name " + ", ".join(covenant_gaps) + " explicitly to meet Server Covenant requirements"
            )
        if denied:
            suggestions.append("Rephrase rules that appear to exclude groups from protection")
        if "appeals_process" not in coverage["positive_indicators"]:
            suggestions.append("Add an appeals process so users can contest moderation decisions")
        if "transparency" not in coverage["positive_indicators"]:
            suggestions.append("Publish how moderation decisions are made and recorded")

        return strengths, weaknesses, suggestions
