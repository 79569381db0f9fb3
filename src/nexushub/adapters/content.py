"""Default content moderation and categorization adapters.

Both are deterministic keyword matchers standing in for an external
classification service.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from nexushub.interfaces.collaborators import (
    Categorization,
    ContentCategorizer,
    ContentModerator,
    ModerationVerdict,
)

# pylint: disable=too-few-public-methods

CATEGORIES = (
    "Technology",
    "Community",
    "Web Development",
    "Lifestyle",
    "Science",
    "Arts & Culture",
    "Gaming",
    "Business",
    "Education",
    "Travel",
    "Food",
    "Health & Wellness",
    "Sports",
    "News",
    "Other",
)

DEFAULT_CATEGORY = "Other"

#: Keyword → category; the category with the most keyword hits wins.
CATEGORY_KEYWORDS: Mapping[str, tuple[str, ...]] = {
    "Technology": ("ai", "software", "hardware", "cloud", "python", "linux", "gadget"),
    "Web Development": ("javascript", "css", "html", "react", "frontend", "backend", "api"),
    "Science": ("physics", "biology", "chemistry", "research", "astronomy", "telescope"),
    "Gaming": ("game", "gaming", "console", "esports", "rpg"),
    "Business": ("startup", "market", "revenue", "investor", "business"),
    "Education": ("course", "learn", "learning", "teaching", "school", "tutorial"),
    "Travel": ("travel", "trip", "flight", "hotel", "beach"),
    "Food": ("recipe", "cooking", "restaurant", "food", "bake"),
    "Health & Wellness": ("health", "fitness", "yoga", "sleep", "wellness"),
    "Sports": ("football", "soccer", "basketball", "tennis", "marathon"),
    "Arts & Culture": ("art", "music", "painting", "museum", "film"),
    "Community": ("meetup", "community", "volunteer", "neighbors"),
    "News": ("breaking", "announcement", "update", "news"),
}

MAX_SUGGESTED_TAGS = 5

_WORD = re.compile(r"[a-z0-9]+")


def _words(content: str) -> list[str]:
    return _WORD.findall(content.lower())


class BlocklistModerator(ContentModerator):
    """Flags content containing any blocklisted phrase (case-insensitive)."""

    def __init__(self, phrases: Iterable[str]):
        self.phrases = tuple(p.strip().lower() for p in phrases if p.strip())

    def moderate(self, content: str) -> ModerationVerdict:
        lowered = content.lower()
        for phrase in self.phrases:
            if phrase in lowered:
                return ModerationVerdict(
                    is_flagged=True, reason=f'contains blocked phrase "{phrase}"'
                )
        return ModerationVerdict(is_flagged=False)


class KeywordCategorizer(ContentCategorizer):
    """Picks the category whose keywords occur most often in the content.

    Suggested tags are the matched keywords, most frequent first.
    """

    def __init__(self, keywords: Mapping[str, tuple[str, ...]] = CATEGORY_KEYWORDS):
        self.keywords = keywords

    def categorize(self, content: str) -> Categorization:
        words = _words(content)
        scores: dict[str, int] = {}
        hits: dict[str, int] = {}
        for category, keywords in self.keywords.items():
            for keyword in keywords:
                if n := words.count(keyword):
                    scores[category] = scores.get(category, 0) + n
                    hits[keyword] = hits.get(keyword, 0) + n
        if not scores:
            return Categorization(category=DEFAULT_CATEGORY, tags=())
        category = max(scores, key=lambda c: (scores[c], -CATEGORIES.index(c)))
        tags = sorted(hits, key=lambda k: (-hits[k], k))[:MAX_SUGGESTED_TAGS]
        return Categorization(category=category, tags=tuple(tags))
