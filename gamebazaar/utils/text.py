import math
import re

WORDS_PER_MINUTE = 200

_NON_WORD = re.compile(r"[^\w ]+")
_SPACES = re.compile(r" +")


def slugify(title: str) -> str:
    """Lowercase the title, drop punctuation, and join words with hyphens."""
    cleaned = _NON_WORD.sub("", (title or "").lower()).strip()
    return _SPACES.sub("-", cleaned)


def estimate_read_time(content: str) -> int:
    words = len((content or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
