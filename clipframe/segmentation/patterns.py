from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(slots=True)
class PatternTable:
    """Locale-specific regexes and keyword lists driving the text features."""

    locale: str
    question: list[re.Pattern[str]]
    bold_claim: list[re.Pattern[str]]
    numbers: re.Pattern[str]
    filler: re.Pattern[str]
    profanity: re.Pattern[str]
    closing_phrases: list[str]
    closing_word: re.Pattern[str]
    trailing_filler: re.Pattern[str]
    early_question_word: re.Pattern[str]
    resolution_keywords: list[str]
    payoff_keywords: list[str]
    stop_words: frozenset[str]
    intro_keywords: list[str] = field(default_factory=list)


ENGLISH_STOP_WORDS = frozenset(
    {
        "a", "about", "above", "after", "again", "against", "all", "am", "an", "and", "any", "are",
        "aren't", "as", "at", "be", "because", "been", "before", "being", "below", "between", "both",
        "but", "by", "could", "couldn't", "did", "didn't", "do", "does", "doesn't", "doing", "don't",
        "down", "during", "each", "few", "for", "from", "further", "had", "hadn't", "has", "hasn't",
        "have", "haven't", "having", "he", "he'd", "he'll", "he's", "her", "here", "here's", "hers",
        "herself", "him", "himself", "his", "how", "how's", "i", "i'd", "i'll", "i'm", "i've", "if",
        "in", "into", "is", "isn't", "it", "it's", "its", "itself", "let's", "me", "more", "most",
        "mustn't", "my", "myself", "no", "nor", "not", "of", "off", "on", "once", "only", "or",
        "other", "ought", "our", "ours", "ourselves", "out", "over", "own", "same", "shan't", "she",
        "she'd", "she'll", "she's", "should", "shouldn't", "so", "some", "such", "than", "that",
        "that's", "the", "their", "theirs", "them", "themselves", "then", "there", "there's", "these",
        "they", "they'd", "they'll", "they're", "they've", "this", "those", "through", "to", "too",
        "under", "until", "up", "very", "was", "wasn't", "we", "we'd", "we'll", "we're", "we've",
        "were", "weren't", "what", "what's", "when", "when's", "where", "where's", "which", "while",
        "who", "who's", "whom", "why", "why's", "with", "won't", "would", "wouldn't", "you", "you'd",
        "you'll", "you're", "you've", "your", "yours", "yourself", "yourselves",
    }
)

# Matched as substrings of the lowercased first chapter title.
INTRO_KEYWORDS: dict[str, list[str]] = {
    "en": ["intro", "introduction", "opening", "welcome"],
    "es": ["intro", "introduccion", "introducción", "apertura", "inicio"],
    "pt": ["intro", "introducao", "introdução", "apresentação", "abertura"],
    "fr": ["intro", "introduction", "ouverture"],
    "de": ["intro", "einführung", "einleitung"],
    "it": ["intro", "introduzione", "apertura", "benvenuti"],
    "nl": ["intro", "introductie", "inleiding", "welkom"],
    "pl": ["intro", "wstęp", "wprowadzenie", "powitanie"],
    "tr": ["intro", "giriş", "açılış"],
    "id": ["intro", "pembukaan", "pendahuluan"],
}

_ENGLISH = PatternTable(
    locale="en",
    question=[
        re.compile(r"^(how|what|why|when|where|who|can|will|should|is|are|do|does|did)\s", re.IGNORECASE),
        re.compile(r"\?"),
    ],
    bold_claim=[
        re.compile(r"^(this is|here's|the best|the worst|never|always|you need|you must|don't|stop)", re.IGNORECASE),
        re.compile(r"^(secret|truth|fact|proven|guaranteed|ultimate|perfect)", re.IGNORECASE),
        re.compile(r"(vs\.|versus|vs|compared to)", re.IGNORECASE),
        re.compile(r"^(shocking|amazing|incredible|unbelievable)", re.IGNORECASE),
    ],
    numbers=re.compile(r"\b\d+\b"),
    filler=re.compile(r"^(um|uh|like|you know|sort of|kind of)$", re.IGNORECASE),
    profanity=re.compile(r"\b(fuck|shit|damn|hell|ass|bitch)\b", re.IGNORECASE),
    closing_phrases=["that's why", "so you can", "and that's", "that's how", "in the end", "the point is"],
    closing_word=re.compile(r"\bso\b|\btherefore\b|\bmeaning\b", re.IGNORECASE),
    trailing_filler=re.compile(r"(um|uh|like)$", re.IGNORECASE),
    early_question_word=re.compile(r"^(how|why|what|when|where|who|can|should|would)\b", re.IGNORECASE),
    resolution_keywords=["because", "so", "that's why", "that means", "which means", "therefore", "result", "here's"],
    payoff_keywords=["so you can", "that's how", "in the end", "the reason", "the secret", "so the", "what happens"],
    stop_words=ENGLISH_STOP_WORDS,
    intro_keywords=INTRO_KEYWORDS["en"],
)

_TABLES: dict[str, PatternTable] = {"en": _ENGLISH}


def register_pattern_table(table: PatternTable) -> None:
    """Install or replace the pattern table for ``table.locale``."""

    _TABLES[table.locale.lower()] = table


def get_pattern_table(locale: str | None = None) -> PatternTable:
    """Return the table for ``locale``, falling back to English."""

    if locale:
        table = _TABLES.get(locale.lower()) or _TABLES.get(locale.lower().split("-")[0])
        if table is not None:
            return table
    return _ENGLISH


def intro_keywords_for(locale: str | None) -> list[str]:
    """Intro keywords for a known language, or the union over all languages."""

    if locale and locale.lower() in INTRO_KEYWORDS:
        return INTRO_KEYWORDS[locale.lower()]

    merged: list[str] = []
    for keywords in INTRO_KEYWORDS.values():
        for keyword in keywords:
            if keyword not in merged:
                merged.append(keyword)
    return merged


def contains_keyword(text: str, keyword: str) -> bool:
    """Whole-word (or whole-phrase) match of ``keyword`` in lowercased ``text``."""

    return re.search(rf"(?<![\w']){re.escape(keyword)}(?![\w'])", text) is not None
