"""
Free-text mood prompt -> genre seeds.

Keyword containment against fixed categories, checked in priority order; the
first category with a hit wins. No scoring and no mixing of categories.
"""
from dataclasses import dataclass

MAX_SEEDS = 5

DEFAULT_LABEL = "general"
DEFAULT_SEEDS = ("pop",)

# (label, keywords, seeds) in priority order
MOOD_CATEGORIES = (
    (
        "energetic",
        ("happy", "energetic", "energy", "excited", "upbeat", "party", "pumped", "workout", "hype"),
        ("dance", "pop"),
    ),
    (
        "calm",
        ("calm", "relax", "chill", "peaceful", "mellow", "focus", "study", "sleep"),
        ("chill", "ambient"),
    ),
    (
        "melancholic",
        ("sad", "melancholy", "melancholic", "lonely", "heartbroken", "gloomy", "depressed", "cry"),
        ("sad", "acoustic"),
    ),
)

# Prompts naming a genre directly are passed through as seeds
GENRE_LABEL = "genre"
GENRE_KEYWORDS = (
    "rock",
    "jazz",
    "classical",
    "hip-hop",
    "electronic",
    "metal",
    "country",
    "blues",
    "indie",
    "folk",
    "reggae",
    "punk",
    "soul",
    "latin",
    "r-n-b",
)


@dataclass(frozen=True)
class MoodMapping:
    seeds: list[str]
    label: str


def map_prompt_to_seeds(prompt: str | None) -> MoodMapping:
    if not prompt or not prompt.strip():
        return MoodMapping(seeds=list(DEFAULT_SEEDS), label=DEFAULT_LABEL)

    text = prompt.lower()
    for label, keywords, seeds in MOOD_CATEGORIES:
        if any(word in text for word in keywords):
            return MoodMapping(seeds=list(seeds), label=label)

    genres = [genre for genre in GENRE_KEYWORDS if genre in text]
    if genres:
        return MoodMapping(seeds=genres[:MAX_SEEDS], label=GENRE_LABEL)

    return MoodMapping(seeds=list(DEFAULT_SEEDS), label=DEFAULT_LABEL)
