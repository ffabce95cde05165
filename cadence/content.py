"""Seed vocabulary for a fresh database.

Primary-school German with English translations, plus a few English items
so the non-German language profile has something to schedule.
"""

from cadence.db.database import Database
from cadence.db.models import DifficultyLevel, LanguageComplexity, LearningItem

BEGINNER = DifficultyLevel.BEGINNER
INTERMEDIATE = DifficultyLevel.INTERMEDIATE
ADVANCED = DifficultyLevel.ADVANCED

# Compounds are harder to segment than the German default suggests
COMPOUND_HEAVY = LanguageComplexity(
    article_complexity=0.9,
    gender_complexity=0.9,
    case_complexity=0.8,
    phonetic_complexity=0.6,
    compound_word_complexity=0.9,
)

SEED_CONTENT: list[LearningItem] = [
    # Animals
    LearningItem(word="der Hund", translation="dog", language="de", difficulty=BEGINNER, category="animals"),
    LearningItem(word="die Katze", translation="cat", language="de", difficulty=BEGINNER, category="animals"),
    LearningItem(word="der Vogel", translation="bird", language="de", difficulty=BEGINNER, category="animals"),
    LearningItem(word="das Pferd", translation="horse", language="de", difficulty=BEGINNER, category="animals"),
    LearningItem(word="der Bär", translation="bear", language="de", difficulty=INTERMEDIATE, category="animals"),
    LearningItem(
        word="das Eichhörnchen", translation="squirrel", language="de", difficulty=ADVANCED, category="animals"
    ),
    # Colors
    LearningItem(word="rot", translation="red", language="de", difficulty=BEGINNER, category="colors"),
    LearningItem(word="blau", translation="blue", language="de", difficulty=BEGINNER, category="colors"),
    LearningItem(word="grün", translation="green", language="de", difficulty=BEGINNER, category="colors"),
    # Family
    LearningItem(word="die Mutter", translation="mother", language="de", difficulty=BEGINNER, category="family"),
    LearningItem(word="der Bruder", translation="brother", language="de", difficulty=BEGINNER, category="family"),
    LearningItem(
        word="die Großmutter", translation="grandmother", language="de", difficulty=INTERMEDIATE, category="family"
    ),
    # Food
    LearningItem(word="das Brot", translation="bread", language="de", difficulty=BEGINNER, category="food"),
    LearningItem(word="der Käse", translation="cheese", language="de", difficulty=INTERMEDIATE, category="food"),
    LearningItem(word="das Brötchen", translation="bread roll", language="de", difficulty=INTERMEDIATE, category="food"),
    # Objects (compounds)
    LearningItem(
        word="die Haustür",
        translation="front door",
        language="de",
        difficulty=INTERMEDIATE,
        category="objects",
        complexity=COMPOUND_HEAVY,
    ),
    LearningItem(
        word="der Kühlschrank",
        translation="fridge",
        language="de",
        difficulty=ADVANCED,
        category="objects",
        complexity=COMPOUND_HEAVY,
    ),
    LearningItem(
        word="die Straße", translation="street", language="de", difficulty=INTERMEDIATE, category="places"
    ),
    # English items for German-speaking learners
    LearningItem(word="the apple", translation="der Apfel", language="en", difficulty=BEGINNER, category="food"),
    LearningItem(word="the kitchen", translation="die Küche", language="en", difficulty=BEGINNER, category="places"),
    LearningItem(
        word="the weather", translation="das Wetter", language="en", difficulty=INTERMEDIATE, category="weather"
    ),
]


def seed_database(db: Database) -> int:
    """Add seed items that are not in the database yet. Returns the number added."""
    count = 0
    for item in SEED_CONTENT:
        if db.get_item_by_word(item.word, item.language) is None:
            db.add_item(item)
            count += 1
    return count
