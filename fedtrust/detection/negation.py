"""
Negation resolution for matched rule patterns.

Distinguishes between:
- Prohibition frames: "No racism", "Don't harass", "Banned: hate speech"
  (the behavior is being banned, so the match stays a positive signal)
- True negation frames: "No protection for", "except", "unless"
  (a protection is being denied, so the match is inverted)
"""
import re
from enum import Enum

import config
from fedtrust.schemas import RulePattern


class NegationFrame(str, Enum):
    PROHIBITION = "prohibition"
    TRUE_NEGATION = "true_negation"
    NONE = "none"


PROHIBITION_FRAMES = [
    re.compile(r"\b(?:no|not|never|don['’]?t)\s+$", re.IGNORECASE),
    re.compile(r"\b(?:banned?|prohibited?|forbidden|disallowed?)\b.*$", re.IGNORECASE),
    re.compile(r"\b(?:we\s+)?(?:do\s+)?not\s+(?:allow|permit|tolerate)\b.*$", re.IGNORECASE),
    re.compile(r"\b(?:verboten|nicht\s+erlaubt)\b.*$", re.IGNORECASE),  # German
    re.compile(r"\b(?:interdit|défendu)\b.*$", re.IGNORECASE),  # French
    re.compile(r"\b(?:prohibido|no\s+permitido)\b.*$", re.IGNORECASE),  # Spanish
    re.compile(r"(?:禁止|違反).*$"),  # Japanese
]

TRUE_NEGATION_FRAMES = [
    re.compile(
        r"\b(?:no|not|never|without)\s+(?:any\s+)?"
        r"(?:protections?|polic(?:y|ies)|rules?|coverage|moderation)\s+"
        r"(?:for|against|on|protecting|covering|regarding|about)\b"
        r"(?:\s+[\w'-]+)?\s*$",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:except|excluding|but\s+not|other\s+than)\s*$", re.IGNORECASE),
    re.compile(r"\b(?:unless|however|although)\s*$", re.IGNORECASE),
    re.compile(r"\b(?:kein\w*\s+schutz|keine\s+richtlinien?)(?:\s+(?:für|gegen|vor))?\s*$", re.IGNORECASE),  # German
    re.compile(r"\b(?:pas\s+de\s+protection|aucune\s+protection|sans\s+politique)(?:\s+(?:pour|contre))?\s*$", re.IGNORECASE),  # French
    re.compile(r"\b(?:sin\s+protección|ninguna\s+protección|excepto)(?:\s+(?:para|contra))?\s*$", re.IGNORECASE),  # Spanish
]

# Categories whose matches can sit inside a prohibition frame
PROHIBITABLE_CATEGORIES = frozenset([
    "umbrella",
    "csam",
    "harassment",
    "hate_speech",
    "privacy",
    "consent",
    "spam",
    "violence",
    "misinformation",
    "protected_class",
])


def classify_frame(
    preceding_text: str,
    rule: RulePattern,
    window: int = config.NEGATION_WINDOW,
    red_flag_window: int = config.RED_FLAG_NEGATION_WINDOW
) -> NegationFrame:
    """
    Classify the text immediately before a match.

    Red flags only look at the closest `red_flag_window` characters so a
    genuine red flag is not explained away by a negation further back.
    Prohibition frames win over true negation.

    Args:
        preceding_text: Text before the match (any length; only the tail is used)
        rule: The pattern that matched

    Returns:
        NegationFrame
    """
    size = red_flag_window if rule.is_red_flag else window
    tail = preceding_text[-size:] if size > 0 else ""

    if rule.category in PROHIBITABLE_CATEGORIES and any(p.search(tail) for p in PROHIBITION_FRAMES):
        return NegationFrame.PROHIBITION

    if any(p.search(tail) for p in TRUE_NEGATION_FRAMES):
        return NegationFrame.TRUE_NEGATION

    return NegationFrame.NONE


def effective_weight(rule: RulePattern, frame: NegationFrame, damping: float = config.NEGATION_DAMPING) -> float:
    """
    Weight after negation.

    A negated red flag means the text bans the bad behavior (positive);
    a negated positive pattern means a protection is denied (negative).
    """
    if frame is not NegationFrame.TRUE_NEGATION:
        return float(rule.weight)
    if rule.is_red_flag:
        return abs(rule.weight) * damping
    return -abs(rule.weight) * damping
