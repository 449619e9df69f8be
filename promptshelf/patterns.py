"""Rule vocabulary for prompt analysis.

Defines the suggestion categories and priorities, plus the keyword tables
each suggestion rule inspects. Keywords are lowercase; the analyzer
matches them against the lower-cased prompt text.

The tables are grouped by the category of suggestion they feed so the
analyzer and reporter agree on where each finding belongs.
"""

from __future__ import annotations

import re
from enum import Enum


class Category(Enum):
    """Broad grouping for suggestions."""

    CLARITY = "clarity"
    SPECIFICITY = "specificity"
    STRUCTURE = "structure"
    CONTEXT = "context"
    TONE = "tone"


class Priority(Enum):
    """How urgently a suggestion should be addressed."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Clarity
# ---------------------------------------------------------------------------

VAGUE_PRONOUNS: tuple[str, ...] = ("it", "this", "that", "these", "those")

SUBJECTIVE_TERMS: tuple[str, ...] = (
    "good",
    "bad",
    "nice",
    "great",
    "terrible",
    "amazing",
    "awful",
)

# Average words per sentence above which sentences read as run-ons
LONG_SENTENCE_WORDS = 25

# A word must be longer than this and appear more often than
# REPEAT_THRESHOLD times to count as repetitive
REPEAT_MIN_LENGTH = 3
REPEAT_THRESHOLD = 3
REPEAT_REPORT_LIMIT = 3

# ---------------------------------------------------------------------------
# Specificity
# ---------------------------------------------------------------------------

TOO_SHORT_HIGH = 15  # fewer words than this -> high priority
TOO_SHORT_MEDIUM = 30  # fewer words than this -> medium priority
TOO_LONG_LOW = 150  # more words than this -> low priority
TOO_LONG_MEDIUM = 300  # more words than this -> medium priority

EXAMPLE_KEYWORDS: tuple[str, ...] = ("example", "for instance", "such as")
EXAMPLE_MIN_WORDS = 60

# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

POLITENESS_KEYWORDS: tuple[str, ...] = ("please",)
POLITENESS_MIN_WORDS = 20

OUTPUT_FORMAT_KEYWORDS: tuple[str, ...] = ("format", "output")
OUTPUT_FORMAT_MIN_WORDS = 50

ROLE_KEYWORDS: tuple[str, ...] = ("role", "act as", "you are")
ROLE_MIN_WORDS = 40

STEP_KEYWORDS: tuple[str, ...] = ("step",)  # also covers "steps", "step-by-step"
STEP_MIN_WORDS = 80

# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

CONTEXT_KEYWORDS: tuple[str, ...] = (
    "context",
    "background",
    "assume",
    "given",
    "considering",
)
CONTEXT_MIN_WORDS = 30

# ---------------------------------------------------------------------------
# Tone
# ---------------------------------------------------------------------------

READABILITY_HIGH = 20  # score below this -> high priority
READABILITY_MEDIUM = 40  # score below this -> medium priority

EXCLAMATION_LOW = 2  # this many or more -> low priority
EXCLAMATION_MEDIUM = 4  # this many or more -> medium priority

# ---------------------------------------------------------------------------
# Compiled helpers
# ---------------------------------------------------------------------------

WORD_RE = re.compile(r"\w+")

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

VAGUE_PRONOUN_RE = re.compile(r"\b(?:" + "|".join(VAGUE_PRONOUNS) + r")\b")

SUBJECTIVE_TERM_RE = re.compile(r"\b(?:" + "|".join(SUBJECTIVE_TERMS) + r")\b")

# Maximum number of suggestions returned from a single analysis
MAX_SUGGESTIONS = 6
