"""
Script-based language sniffing for moderation rule text.
"""
import re
from typing import List

import config

# Checked in this order; the result keeps it
LANGUAGE_MARKERS = [
    ("en", re.compile(r"[a-zA-Z]")),
    ("de", re.compile(r"[äöüßÄÖÜ]")),
    ("fr", re.compile(r"[àâäéèêëïîôùûüÿœæçÀÂÄÉÈÊËÏÎÔÙÛÜŸŒÆÇ]")),
    ("es", re.compile(r"[áéíóúüñÁÉÍÓÚÜÑ¿¡]")),
    ("ja", re.compile(r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF]")),
]


def detect_languages(text: str, base_language: str = config.BASE_LANGUAGE) -> List[str]:
    """
    Detect which languages appear in rule text by character class.

    Diacritics overlap between languages (é is both French and Spanish),
    so more than one language is usually reported for accented text.

    Args:
        text: Rule text (may be empty or None)
        base_language: Returned when nothing distinctive is found

    Returns:
        Non-empty list of language codes
    """
    if not text:
        return [base_language]

    languages = [lang for lang, marker in LANGUAGE_MARKERS if marker.search(text)]
    return languages or [base_language]
