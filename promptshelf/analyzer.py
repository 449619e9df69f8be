"""Core prompt analysis engine.

Measures a prompt with plain text metrics and runs a set of independent
heuristic rules over it. No model, API key or external service is
involved -- everything is computed locally from the text.

Metrics:
    - Word and character counts
    - Estimated tokens (roughly 1.3 tokens per word)
    - Readability: Flesch Reading Ease, clamped to 0-100

Each triggered rule yields one Suggestion tagged with a category
(clarity, specificity, structure, context, tone) and a priority. The
full set is shuffled and a sample of at most six is returned, so
repeated calls on a prompt with many findings rotate through them.
"""

from __future__ import annotations

import math
import random
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from promptshelf.patterns import (
    CONTEXT_KEYWORDS,
    CONTEXT_MIN_WORDS,
    EXAMPLE_KEYWORDS,
    EXAMPLE_MIN_WORDS,
    EXCLAMATION_LOW,
    EXCLAMATION_MEDIUM,
    LONG_SENTENCE_WORDS,
    MAX_SUGGESTIONS,
    OUTPUT_FORMAT_KEYWORDS,
    OUTPUT_FORMAT_MIN_WORDS,
    POLITENESS_KEYWORDS,
    POLITENESS_MIN_WORDS,
    READABILITY_HIGH,
    READABILITY_MEDIUM,
    REPEAT_MIN_LENGTH,
    REPEAT_REPORT_LIMIT,
    REPEAT_THRESHOLD,
    ROLE_KEYWORDS,
    ROLE_MIN_WORDS,
    SENTENCE_SPLIT_RE,
    STEP_KEYWORDS,
    STEP_MIN_WORDS,
    SUBJECTIVE_TERM_RE,
    TOO_LONG_LOW,
    TOO_LONG_MEDIUM,
    TOO_SHORT_HIGH,
    TOO_SHORT_MEDIUM,
    VAGUE_PRONOUN_RE,
    WORD_RE,
    Category,
    Priority,
)

TOKENS_PER_WORD = 1.3

# SystemRandom draws from os.urandom and keeps no state between calls
_SYSTEM_RANDOM = random.SystemRandom()

_NON_LETTER_RE = re.compile(r"[^a-z]")
_SILENT_SUFFIX_RE = re.compile(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$")
_VOWEL_RUN_RE = re.compile(r"[aeiouy]+")


# ---------------------------------------------------------------------------
# Result data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Suggestion:
    """A single improvement hint produced by one rule."""

    category: Category
    priority: Priority
    message: str
    rule: str = ""  # identifier of the rule that produced it


@dataclass(frozen=True)
class AnalysisResult:
    """Metrics and suggestions for a single piece of prompt text."""

    word_count: int = 0
    character_count: int = 0
    estimated_tokens: int = 0
    readability_score: int = 100
    suggestions: tuple[Suggestion, ...] = field(default_factory=tuple)

    @property
    def readability_label(self) -> str:
        s = self.readability_score
        if s >= 80:
            return "Easy"
        if s >= 60:
            return "Standard"
        if s >= 40:
            return "Fairly difficult"
        if s >= 20:
            return "Difficult"
        return "Very difficult"


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def _count_words(text: str) -> int:
    return len(text.split())


def _count_sentences(text: str) -> int:
    return len([s for s in SENTENCE_SPLIT_RE.split(text) if s.strip()])


def _count_syllables(text: str) -> int:
    """Estimate the syllables in ``text``.

    Short words (three characters or fewer) count as one syllable. Longer
    words lose non-letters, a silent trailing ``e``/``es``/``ed`` and a
    leading ``y``; each remaining run of vowels is one syllable, with a
    floor of one per word.
    """
    total = 0
    for word in text.lower().split():
        if len(word) <= 3:
            total += 1
            continue
        clean = _NON_LETTER_RE.sub("", word)
        clean = _SILENT_SUFFIX_RE.sub("", clean)
        if clean.startswith("y"):
            clean = clean[1:]
        total += len(_VOWEL_RUN_RE.findall(clean)) or 1
    return total


def _readability(word_count: int, sentence_count: int, syllable_count: int) -> int:
    """Flesch Reading Ease, clamped to 0-100 and rounded half up."""
    if sentence_count <= 0 or word_count <= 0:
        return 100
    score = (
        206.835
        - 1.015 * (word_count / sentence_count)
        - 84.6 * (syllable_count / word_count)
    )
    score = max(0.0, min(100.0, score))
    return int(math.floor(score + 0.5))


def _has_any_keyword(text_lower: str, keywords: tuple[str, ...]) -> bool:
    return any(kw in text_lower for kw in keywords)


def _repeated_words(text_lower: str) -> list[str]:
    """Words longer than the minimum length that appear too often, most frequent first."""
    counts = Counter(
        w for w in WORD_RE.findall(text_lower) if len(w) > REPEAT_MIN_LENGTH
    )
    return [w for w, n in counts.most_common() if n > REPEAT_THRESHOLD]


# ---------------------------------------------------------------------------
# Suggestion rules
# ---------------------------------------------------------------------------

def _generate_suggestions(
    text_lower: str,
    word_count: int,
    sentence_count: int,
    readability_score: int,
) -> list[Suggestion]:
    """Evaluate every rule and return the triggered suggestions in rule order."""
    suggestions: list[Suggestion] = []

    def add(rule: str, category: Category, priority: Priority, message: str) -> None:
        suggestions.append(Suggestion(category, priority, message, rule))

    # -- Clarity --
    pronouns = len(VAGUE_PRONOUN_RE.findall(text_lower))
    if pronouns > 2:
        add(
            "vague_pronouns",
            Category.CLARITY,
            Priority.HIGH,
            f'Found {pronouns} vague pronouns ("it", "this", "that"...). '
            "Replace them with the specific nouns they refer to.",
        )
    elif pronouns >= 1:
        add(
            "vague_pronouns",
            Category.CLARITY,
            Priority.MEDIUM,
            'Consider replacing vague pronouns like "it", "this" or "that" '
            "with more specific nouns for better clarity.",
        )

    subjective = len(SUBJECTIVE_TERM_RE.findall(text_lower))
    if subjective > 3:
        add(
            "subjective_terms",
            Category.CLARITY,
            Priority.HIGH,
            f"Found {subjective} subjective terms. Replace words like "
            '"good", "bad" or "great" with specific, measurable criteria.',
        )
    elif subjective >= 1:
        add(
            "subjective_terms",
            Category.CLARITY,
            Priority.MEDIUM,
            'Replace subjective terms like "good", "bad" or "nice" with '
            "more specific, measurable criteria.",
        )

    if sentence_count > 0 and word_count / sentence_count > LONG_SENTENCE_WORDS:
        average = word_count / sentence_count
        add(
            "long_sentences",
            Category.CLARITY,
            Priority.MEDIUM,
            f"Sentences average {average:.0f} words. Break long sentences "
            "into shorter, single-purpose instructions.",
        )

    repeated = _repeated_words(text_lower)
    if repeated:
        listed = ", ".join(f'"{w}"' for w in repeated[:REPEAT_REPORT_LIMIT])
        add(
            "repeated_words",
            Category.CLARITY,
            Priority.MEDIUM,
            f"Some words are repeated often ({listed}). Vary the wording or "
            "remove redundant phrases.",
        )

    # -- Specificity --
    if word_count < TOO_SHORT_HIGH:
        add(
            "too_short",
            Category.SPECIFICITY,
            Priority.HIGH,
            f"Your prompt is only {word_count} words. Add context, examples "
            "or specific requirements to get better results.",
        )
    elif word_count < TOO_SHORT_MEDIUM:
        add(
            "too_short",
            Category.SPECIFICITY,
            Priority.MEDIUM,
            "Your prompt is quite short. Consider adding more context, "
            "examples or specific requirements.",
        )

    if word_count > TOO_LONG_MEDIUM:
        add(
            "too_long",
            Category.SPECIFICITY,
            Priority.MEDIUM,
            f"Your prompt is {word_count} words long. Break it into smaller, "
            "focused prompts or remove redundant information.",
        )
    elif word_count > TOO_LONG_LOW:
        add(
            "too_long",
            Category.SPECIFICITY,
            Priority.LOW,
            "Your prompt is getting long. Check whether every part is needed.",
        )

    if word_count > EXAMPLE_MIN_WORDS and not _has_any_keyword(text_lower, EXAMPLE_KEYWORDS):
        add(
            "missing_examples",
            Category.SPECIFICITY,
            Priority.MEDIUM,
            "Add one or two examples of the result you expect. Examples "
            "make the desired output much clearer.",
        )

    # -- Structure --
    if word_count > POLITENESS_MIN_WORDS and not _has_any_keyword(text_lower, POLITENESS_KEYWORDS):
        add(
            "missing_please",
            Category.STRUCTURE,
            Priority.LOW,
            'Consider phrasing the request with "please" to make it read '
            "as a clear instruction.",
        )

    if word_count > OUTPUT_FORMAT_MIN_WORDS and not _has_any_keyword(
        text_lower, OUTPUT_FORMAT_KEYWORDS
    ):
        add(
            "missing_output_format",
            Category.STRUCTURE,
            Priority.MEDIUM,
            "Specify the desired output format (a list, a table, JSON, a "
            "number of paragraphs) to get more structured responses.",
        )

    if word_count > ROLE_MIN_WORDS and not _has_any_keyword(text_lower, ROLE_KEYWORDS):
        add(
            "missing_role",
            Category.STRUCTURE,
            Priority.MEDIUM,
            'Define a role or persona for the AI, e.g. "You are an '
            'experienced technical writer...", for more targeted responses.',
        )

    if word_count > STEP_MIN_WORDS and not _has_any_keyword(text_lower, STEP_KEYWORDS):
        add(
            "missing_steps",
            Category.STRUCTURE,
            Priority.LOW,
            "For complex tasks, ask for a step-by-step approach to get more "
            "detailed responses.",
        )

    # -- Context --
    if word_count > CONTEXT_MIN_WORDS and not _has_any_keyword(text_lower, CONTEXT_KEYWORDS):
        add(
            "missing_context",
            Category.CONTEXT,
            Priority.MEDIUM,
            "Provide relevant context or background information so the AI "
            "understands your specific situation.",
        )

    # -- Tone --
    if readability_score < READABILITY_HIGH:
        add(
            "low_readability",
            Category.TONE,
            Priority.HIGH,
            f"Readability score is {readability_score}/100. The prompt is "
            "very hard to read; simplify the language.",
        )
    elif readability_score < READABILITY_MEDIUM:
        add(
            "low_readability",
            Category.TONE,
            Priority.MEDIUM,
            "Your prompt may be too complex. Consider simplifying the "
            "language to make it more accessible.",
        )

    exclamations = text_lower.count("!")
    if exclamations >= EXCLAMATION_MEDIUM:
        add(
            "excess_exclamations",
            Category.TONE,
            Priority.MEDIUM,
            f"Found {exclamations} exclamation marks. Remove most of them "
            "to keep a professional tone.",
        )
    elif exclamations >= EXCLAMATION_LOW:
        add(
            "excess_exclamations",
            Category.TONE,
            Priority.LOW,
            "Consider reducing the use of exclamation marks to maintain a "
            "more professional tone.",
        )

    return suggestions


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def suggest(content: str) -> list[Suggestion]:
    """Return every suggestion triggered by ``content``, in rule order.

    Unlike :func:`analyze` this neither shuffles nor truncates.
    """
    if not content.strip():
        return []
    word_count = _count_words(content)
    sentence_count = _count_sentences(content)
    readability = _readability(word_count, sentence_count, _count_syllables(content))
    return _generate_suggestions(content.lower(), word_count, sentence_count, readability)


def analyze(content: str, rng: Optional[random.Random] = None) -> AnalysisResult:
    """Analyze prompt text and return its metrics and a suggestion sample.

    Args:
        content: The raw prompt text. Any string is accepted.
        rng: Source used to shuffle the suggestions. Defaults to a
            stateless OS-entropy source; pass a seeded ``random.Random``
            for reproducible ordering.

    Returns:
        An AnalysisResult. At most six suggestions are included, picked
        at random from all triggered rules.
    """
    word_count = _count_words(content)
    sentence_count = _count_sentences(content)
    readability = _readability(word_count, sentence_count, _count_syllables(content))

    suggestions: list[Suggestion] = []
    if content.strip():
        suggestions = _generate_suggestions(
            content.lower(), word_count, sentence_count, readability
        )
        (rng or _SYSTEM_RANDOM).shuffle(suggestions)

    return AnalysisResult(
        word_count=word_count,
        character_count=len(content),
        estimated_tokens=math.ceil(word_count * TOKENS_PER_WORD),
        readability_score=readability,
        suggestions=tuple(suggestions[:MAX_SUGGESTIONS]),
    )
