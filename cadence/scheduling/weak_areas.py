"""Weak-area analysis over a learner's recorded mistakes.

Aggregates mistake records into per-type patterns (how often, how recently,
how severe, and whether it is getting better) and attaches practice
recommendations for each pattern.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from cadence.db.models import AttemptRecord, MistakeRecord, MistakeType

RECENT_DAYS = 7
MIN_TREND_SAMPLES = 5
MIN_IMPROVEMENT_SAMPLES = 10
TOP_PATTERNS = 5


class Trend(Enum):
    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    WORSENING = "WORSENING"


RECOMMENDATIONS: dict[MistakeType, list[str]] = {
    MistakeType.ARTICLE_ERROR: [
        "Practice articles together with noun gender rules",
        "Learn every noun with its article, never the bare noun",
    ],
    MistakeType.UMLAUT_ERROR: [
        "Practice pronunciation of umlauts and accented letters",
        "Learn when umlauts appear in plural forms",
    ],
    MistakeType.COMPOUND_ERROR: [
        "Study compound word formation rules",
        "Practice breaking down compound words into their parts",
    ],
    MistakeType.CASE_ERROR: [
        "Review article changes across Nominativ, Akkusativ, Dativ and Genitiv",
    ],
    MistakeType.PHONETIC_CONFUSION: [
        "Listen to audio pronunciations more carefully",
        "Practice distinguishing similar sounds",
    ],
    MistakeType.VISUAL_CONFUSION: [
        "Slow down when reading and writing",
        "Pay attention to letter shapes (b/d, m/n, etc.)",
    ],
    MistakeType.SPELLING_ERROR: [
        "Practice spelling with written exercises",
        "Use mnemonic devices for difficult words",
    ],
    MistakeType.CAPITALIZATION_ERROR: [
        "Remember: all German nouns are capitalized",
    ],
}
DEFAULT_RECOMMENDATIONS = ["Continue practicing this word type"]


@dataclass
class MistakePattern:
    """Aggregated view of one mistake type for a learner."""

    mistake_type: MistakeType
    frequency: int = 0
    recent_frequency: int = 0  # Occurrences in the last RECENT_DAYS days
    affected_items: list[int] = field(default_factory=list)
    severity: float = 0.0  # Average severity (0-1)
    trend: Trend = Trend.STABLE
    recommendations: list[str] = field(default_factory=list)


@dataclass
class WeakAreas:
    """Summary of where a learner is struggling."""

    learner_id: int
    top_mistakes: list[MistakePattern]
    overall_accuracy: float  # Percentage 0-100
    improvement_rate: float  # Percentage change in accuracy, older half vs newer half
    last_analyzed: datetime


def aggregate_mistake_patterns(
    mistakes: list[MistakeRecord],
    now: datetime | None = None,
) -> list[MistakePattern]:
    """Group mistakes by type, most frequent first.

    mistakes may arrive in any order; trends are computed over the
    chronological sequence.
    """
    now = now or datetime.now()
    cutoff = now - timedelta(days=RECENT_DAYS)
    chronological = sorted(mistakes, key=lambda m: m.created_at or datetime.min)

    patterns: dict[MistakeType, MistakePattern] = {}
    severity_totals: dict[MistakeType, float] = {}

    for mistake in chronological:
        pattern = patterns.setdefault(mistake.mistake_type, MistakePattern(mistake_type=mistake.mistake_type))
        pattern.frequency += 1
        if mistake.created_at is not None and mistake.created_at >= cutoff:
            pattern.recent_frequency += 1
        if mistake.item_id not in pattern.affected_items:
            pattern.affected_items.append(mistake.item_id)
        severity_totals[mistake.mistake_type] = severity_totals.get(mistake.mistake_type, 0.0) + mistake.severity

    for mistake_type, pattern in patterns.items():
        pattern.severity = severity_totals[mistake_type] / pattern.frequency
        pattern.trend = _calculate_trend(mistake_type, chronological)
        pattern.recommendations = list(RECOMMENDATIONS.get(mistake_type, DEFAULT_RECOMMENDATIONS))

    # sorted() is stable, so equal frequencies keep first-seen order
    return sorted(patterns.values(), key=lambda p: p.frequency, reverse=True)


def _calculate_trend(mistake_type: MistakeType, chronological: list[MistakeRecord]) -> Trend:
    """Compare how often a type occurs in the older vs newer half of the mistake log."""
    occurrences = sum(1 for m in chronological if m.mistake_type == mistake_type)
    if occurrences < MIN_TREND_SAMPLES:
        return Trend.STABLE  # Not enough data

    midpoint = len(chronological) // 2
    older = sum(1 for m in chronological[:midpoint] if m.mistake_type == mistake_type)
    newer = sum(1 for m in chronological[midpoint:] if m.mistake_type == mistake_type)

    if newer < older * 0.8:
        return Trend.IMPROVING
    if newer > older * 1.2:
        return Trend.WORSENING
    return Trend.STABLE


def calculate_improvement_rate(attempts: list[AttemptRecord]) -> float:
    """Percentage change in accuracy between the older and newer half of attempts."""
    if len(attempts) < MIN_IMPROVEMENT_SAMPLES:
        return 0.0

    chronological = sorted(attempts, key=lambda a: a.attempted_at or datetime.min)
    midpoint = len(chronological) // 2
    older = chronological[:midpoint]
    newer = chronological[midpoint:]

    older_accuracy = sum(1 for a in older if a.is_correct) / len(older)
    newer_accuracy = sum(1 for a in newer if a.is_correct) / len(newer)

    if older_accuracy == 0:
        return 100.0 if newer_accuracy > 0 else 0.0
    return (newer_accuracy - older_accuracy) / older_accuracy * 100


def analyze_weak_areas(
    learner_id: int,
    mistakes: list[MistakeRecord],
    attempts: list[AttemptRecord],
    now: datetime | None = None,
) -> WeakAreas:
    """Summarize a learner's most common mistakes and accuracy trend."""
    now = now or datetime.now()
    total = len(attempts)
    correct = sum(1 for a in attempts if a.is_correct)

    return WeakAreas(
        learner_id=learner_id,
        top_mistakes=aggregate_mistake_patterns(mistakes, now)[:TOP_PATTERNS],
        overall_accuracy=(correct / total * 100) if total else 0.0,
        improvement_rate=calculate_improvement_rate(attempts),
        last_analyzed=now,
    )
