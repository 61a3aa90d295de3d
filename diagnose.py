#!/usr/bin/env python3
"""
Diagnostic script to check fedtrust engine state.

Usage:
    python3 diagnose.py                 # built-in sample rules
    python3 diagnose.py rules.txt       # one rule per line
"""
import sys
from pathlib import Path

from fedtrust.adapters.snapshot_store import SnapshotStore
from fedtrust.detection.policy_classifier import PolicyTextClassifier
from fedtrust.detection.rule_library import RuleLibrary

SAMPLE_RULES = [
    "No racism, sexism, homophobia, or transphobia will be tolerated.",
    "Harassment, dogpiling and doxxing are banned.",
    "Use content warnings for sensitive topics.",
    "You can appeal moderation decisions by contacting the admins.",
]


def diagnose(rule_texts):
    print("=" * 60)
    print("fedtrust System Diagnostic")
    print("=" * 60)

    library = RuleLibrary()
    print(f"\nRule patterns: {len(library)}")
    print(f"Languages: {', '.join(library.languages)}")
    if library.diagnostics:
        print(f"Skipped patterns: {len(library.diagnostics)}")
        for diagnostic in library.diagnostics:
            print(f"   - {diagnostic}")

    snapshots = SnapshotStore()
    percentiles = snapshots.percentiles()
    reputation = snapshots.reputation()
    print(f"\nFederation percentiles: {percentiles.model_dump() if percentiles else 'MISSING'}")
    if reputation:
        print(f"Reputation lists: {len(reputation.trusted)} trusted, {len(reputation.problematic)} problematic")
    else:
        print("Reputation lists: MISSING")
    for diagnostic in snapshots.diagnostics:
        print(f"   - {diagnostic}")

    print("\n" + "=" * 60)
    print("Policy Analysis:")
    print("=" * 60)

    result = PolicyTextClassifier(library).analyze(rule_texts)
    print(f"\nRaw score: {result.raw_score:.1f}")
    print(f"Normalized: {result.normalized_score:.1f}/37.5")
    print(f"Confidence: {result.confidence}%")
    print(f"Languages: {', '.join(result.detected_languages) or '-'}")
    print(f"Covenant: {result.covenant_alignment.score}% (meets: {result.covenant_alignment.meets_requirements})")
    print(f"Meets minimum: {result.meets_minimum}")

    print("\nSignals:")
    for signal in result.matched_signals:
        negated = " [negated]" if signal.is_negated else ""
        print(f"   {signal.category}/{signal.subcategory} {signal.weight:+.1f}{negated}: \"{signal.matched_text}\"")

    for heading, items in (
        ("Strengths", result.strengths),
        ("Weaknesses", result.weaknesses),
        ("Suggestions", result.suggestions),
        ("Flags", result.flags),
    ):
        if items:
            print(f"\n{heading}:")
            for item in items:
                print(f"   - {item}")

    print("\n" + "=" * 60)
    print("Diagnostic Complete")
    print("=" * 60)


if __name__ == "__main__":
    if len(sys.argv) > 1:
        lines = Path(sys.argv[1]).read_text(encoding="utf-8").splitlines()
        rules = [line for line in lines if line.strip()]
    else:
        rules = SAMPLE_RULES
    diagnose(rules)
