"""Mistake classification for incorrect vocabulary answers.

Each wrong answer is run through a fixed battery of checks in priority order.
Every check that matches contributes its mistake type, so one answer can show
several kinds of mistakes (e.g. a wrong article that is also a wrong case).

Normalising checks (diacritics, phonetic, visual) share one rule: a check
matches when mapping both answers through its key removes at least one edit
and leaves at most one residual edit.
"""

import unicodedata
from dataclasses import dataclass, field
from typing import Callable

from rapidfuzz.distance import Levenshtein

from cadence.db.models import LanguageComplexity, LearningItem, MistakeType


# Base severity per mistake type, scaled by the matching language coefficient
BASE_SEVERITY: dict[MistakeType, float] = {
    MistakeType.ARTICLE_ERROR: 0.8,
    MistakeType.UMLAUT_ERROR: 0.7,
    MistakeType.COMPOUND_ERROR: 0.7,
    MistakeType.CASE_ERROR: 0.75,
    MistakeType.PHONETIC_CONFUSION: 0.6,
    MistakeType.VISUAL_CONFUSION: 0.5,
    MistakeType.SPELLING_ERROR: 0.5,
    MistakeType.CAPITALIZATION_ERROR: 0.3,
    MistakeType.UNCLASSIFIED: 0.5,
}

NEUTRAL_WEIGHT = 1.0
MAX_COMPLEXITY_WEIGHT = 2.0
WEIGHT_PER_SEVERITY = 0.35

# Sound-alike letters collapse onto one representative
PHONETIC_DIGRAPHS = (("sh", "ch"), ("th", "t"), ("ph", "f"))
PHONETIC_GROUPS = str.maketrans({"p": "b", "t": "d", "k": "g", "v": "f", "w": "f", "z": "s", "n": "m"})

# Look-alike glyphs collapse onto one representative
VISUAL_DIGRAPHS = (("rn", "m"),)
VISUAL_GROUPS = str.maketrans({"d": "b", "q": "p", "n": "m", "v": "u", "l": "i", "1": "i", "0": "o"})


@dataclass(frozen=True)
class LanguageProfile:
    """Language-specific rules used by the classifier."""

    code: str
    complexity: LanguageComplexity
    articles: frozenset[str] = frozenset()
    # Article forms that belong to the same gender/number declension
    declensions: tuple[frozenset[str], ...] = ()
    case_suffixes: tuple[str, ...] = ()
    # Written substitutes for special characters (ä -> ae)
    transliterations: tuple[tuple[str, str], ...] = ()


LANGUAGE_PROFILES: dict[str, LanguageProfile] = {
    "de": LanguageProfile(
        code="de",
        complexity=LanguageComplexity(
            article_complexity=0.9,  # der/die/das is very difficult
            gender_complexity=0.9,
            case_complexity=0.8,  # Nominativ, Akkusativ, Dativ, Genitiv
            phonetic_complexity=0.6,  # Umlauts and special sounds
            compound_word_complexity=0.7,
        ),
        articles=frozenset(
            {"der", "die", "das", "den", "dem", "des", "ein", "eine", "einen", "einem", "einer", "eines"}
        ),
        declensions=(
            frozenset({"der", "den", "dem", "des"}),  # masculine
            frozenset({"die", "der"}),  # feminine
            frozenset({"das", "dem", "des"}),  # neuter
            frozenset({"die", "den", "der"}),  # plural
            frozenset({"ein", "einen", "einem", "eines"}),
            frozenset({"eine", "einer"}),
        ),
        case_suffixes=("e", "n", "en", "s", "es", "em", "er"),
        transliterations=(("ä", "ae"), ("ö", "oe"), ("ü", "ue"), ("ß", "ss")),
    ),
    "en": LanguageProfile(
        code="en",
        complexity=LanguageComplexity(
            article_complexity=0.2,  # just "the/a/an"
            gender_complexity=0.1,
            case_complexity=0.1,
            phonetic_complexity=0.4,
            compound_word_complexity=0.3,
        ),
        articles=frozenset({"the", "a", "an"}),
    ),
    "es": LanguageProfile(
        code="es",
        complexity=LanguageComplexity(
            article_complexity=0.6,
            gender_complexity=0.6,
            case_complexity=0.1,
            phonetic_complexity=0.4,
            compound_word_complexity=0.2,
        ),
        articles=frozenset({"el", "la", "los", "las", "un", "una", "unos", "unas"}),
    ),
}


def get_language_profile(language_code: str | None) -> LanguageProfile:
    """Return the profile for a language, falling back to English."""
    return LANGUAGE_PROFILES.get((language_code or "").lower(), LANGUAGE_PROFILES["en"])


@dataclass(frozen=True)
class MistakeAnalysis:
    """Result of classifying one answer."""

    mistake_types: tuple[MistakeType, ...] = ()
    severities: dict[MistakeType, float] = field(default_factory=dict)
    complexity_weight: float = NEUTRAL_WEIGHT

    @property
    def has_mistakes(self) -> bool:
        return bool(self.mistake_types)


def severity_for(mistake_type: MistakeType, complexity: LanguageComplexity) -> float:
    """Severity (0-1) of a mistake type under the given complexity coefficients."""
    coefficient = {
        MistakeType.ARTICLE_ERROR: complexity.article_complexity,
        MistakeType.UMLAUT_ERROR: complexity.phonetic_complexity,
        MistakeType.PHONETIC_CONFUSION: complexity.phonetic_complexity,
        MistakeType.COMPOUND_ERROR: complexity.compound_word_complexity,
        MistakeType.CASE_ERROR: complexity.case_complexity,
    }.get(mistake_type, 1.0)
    return max(0.0, min(1.0, BASE_SEVERITY.get(mistake_type, 0.5) * coefficient))


def complexity_weight(severities: list[float] | tuple[float, ...]) -> float:
    """Combine mistake severities into a bounded mistake weight.

    Non-decreasing in both the number of mistakes and their severities,
    1.0 with no mistakes, never above MAX_COMPLEXITY_WEIGHT.
    """
    weight = NEUTRAL_WEIGHT + WEIGHT_PER_SEVERITY * sum(max(0.0, s) for s in severities)
    return min(MAX_COMPLEXITY_WEIGHT, weight)


def classify_mistake(
    item: LearningItem | None,
    correct_answer: str,
    given_answer: str,
    language_code: str | None = None,
) -> MistakeAnalysis:
    """Classify how a given answer differs from the correct one.

    Args:
        item: The learning item; its complexity (if set) overrides the
            language defaults when computing severities.
        correct_answer: The expected answer.
        given_answer: What the learner typed.
        language_code: Language of the answer; defaults to the item's language.

    Returns:
        MistakeAnalysis with the ordered mistake types, their severities and
        the combined complexity weight. Identical answers yield no mistakes.
    """
    correct = (correct_answer or "").strip()
    given = (given_answer or "").strip()

    if correct == given:
        return MistakeAnalysis()

    if language_code is None and item is not None:
        language_code = item.language
    profile = get_language_profile(language_code)
    complexity = item.complexity if item is not None and item.complexity is not None else profile.complexity

    correct_lower = correct.lower()
    given_lower = given.lower()
    correct_tokens = correct_lower.split()
    given_tokens = given_lower.split()

    found: list[MistakeType] = []

    if complexity.article_complexity > 0 and _has_article_error(correct_tokens, given_tokens, profile):
        found.append(MistakeType.ARTICLE_ERROR)

    if complexity.phonetic_complexity > 0 and _has_diacritic_error(correct_lower, given_lower, profile):
        found.append(MistakeType.UMLAUT_ERROR)

    if complexity.compound_word_complexity > 0 and _has_compound_error(correct_lower, given_lower):
        found.append(MistakeType.COMPOUND_ERROR)

    if complexity.case_complexity > 0 and _has_case_error(correct_tokens, given_tokens, profile):
        found.append(MistakeType.CASE_ERROR)

    if complexity.phonetic_complexity > 0 and _collapses(correct_lower, given_lower, _phonetic_key):
        found.append(MistakeType.PHONETIC_CONFUSION)

    if _collapses(correct_lower, given_lower, _visual_key):
        found.append(MistakeType.VISUAL_CONFUSION)
    elif not found and _is_small_misspelling(correct_lower, given_lower):
        found.append(MistakeType.SPELLING_ERROR)

    if correct_lower == given_lower:
        found.append(MistakeType.CAPITALIZATION_ERROR)

    if not found:
        found.append(MistakeType.UNCLASSIFIED)

    severities = {mistake_type: severity_for(mistake_type, complexity) for mistake_type in found}
    return MistakeAnalysis(
        mistake_types=tuple(found),
        severities=severities,
        complexity_weight=complexity_weight(list(severities.values())),
    )


def _collapses(correct: str, given: str, key: Callable[[str], str], tolerance: int = 1) -> bool:
    """True if normalising both strings with key removes edits and leaves <= tolerance."""
    raw = Levenshtein.distance(correct, given)
    if raw == 0:
        return False
    residual = Levenshtein.distance(key(correct), key(given))
    return residual < raw and residual <= tolerance


def _has_article_error(correct_tokens: list[str], given_tokens: list[str], profile: LanguageProfile) -> bool:
    if not correct_tokens or not given_tokens:
        return False
    correct_article, given_article = correct_tokens[0], given_tokens[0]
    return (
        correct_article in profile.articles
        and given_article in profile.articles
        and correct_article != given_article
    )


def _strip_diacritics(text: str, profile: LanguageProfile) -> str:
    for special, replacement in profile.transliterations:
        # Written substitutes (ae) and bare vowels (a) both fold to the base letter
        base = unicodedata.normalize("NFD", special)[0]
        if special == "ß":
            text = text.replace(special, replacement)
        else:
            text = text.replace(replacement, base)
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _has_special_characters(text: str, profile: LanguageProfile) -> bool:
    if any(special in text for special, _ in profile.transliterations):
        return True
    return unicodedata.normalize("NFD", text) != text


def _has_diacritic_error(correct: str, given: str, profile: LanguageProfile) -> bool:
    if not (_has_special_characters(correct, profile) or _has_special_characters(given, profile)):
        return False
    return _collapses(correct, given, lambda text: _strip_diacritics(text, profile))


def _has_compound_error(correct: str, given: str) -> bool:
    """Same letters, different word segmentation (Haus Tür vs Haustür)."""
    if correct == given:
        return False

    def _joined(text: str) -> str:
        return "".join(text.replace("-", " ").split())

    return _joined(correct) == _joined(given) and bool(_joined(correct))


def _case_stems(word: str, suffixes: tuple[str, ...]) -> set[str]:
    stems = {word}
    for suffix in suffixes:
        if word.endswith(suffix) and len(word) - len(suffix) >= 3:
            stems.add(word[: -len(suffix)])
    return stems


def _has_case_error(correct_tokens: list[str], given_tokens: list[str], profile: LanguageProfile) -> bool:
    """Same noun, declined for the wrong case (article form or noun ending)."""
    if not profile.declensions and not profile.case_suffixes:
        return False
    if not correct_tokens or len(correct_tokens) != len(given_tokens):
        return False

    article_shift = False
    correct_rest, given_rest = correct_tokens, given_tokens
    if correct_tokens[0] in profile.articles and given_tokens[0] in profile.articles:
        correct_article, given_article = correct_tokens[0], given_tokens[0]
        if correct_article != given_article:
            article_shift = any(
                correct_article in paradigm and given_article in paradigm for paradigm in profile.declensions
            )
            if not article_shift:
                return False
        correct_rest, given_rest = correct_tokens[1:], given_tokens[1:]

    differing = [(c, g) for c, g in zip(correct_rest, given_rest) if c != g]
    if not differing:
        return article_shift
    if len(differing) > 1:
        return False

    correct_word, given_word = differing[0]
    return bool(
        _case_stems(correct_word, profile.case_suffixes) & _case_stems(given_word, profile.case_suffixes)
    )


def _phonetic_key(text: str) -> str:
    for digraph, replacement in PHONETIC_DIGRAPHS:
        text = text.replace(digraph, replacement)
    return text.translate(PHONETIC_GROUPS)


def _visual_key(text: str) -> str:
    for digraph, replacement in VISUAL_DIGRAPHS:
        text = text.replace(digraph, replacement)
    return text.translate(VISUAL_GROUPS)


def _is_small_misspelling(correct: str, given: str) -> bool:
    if not given:
        return False
    distance = Levenshtein.distance(correct, given)
    return 0 < distance <= max(1, len(correct) // 4)
