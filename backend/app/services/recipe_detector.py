"""
Recipe Candidate Detector
-------------------------
Flags assistant messages that look like recipes.

Chat output is free-form, so the rules are deliberately loose:
an ingredients keyword (FR/EN, plus misspellings seen in real chats) is the
main signal, and length or a single list line is enough as confirmation.
"""

import logging
import re
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

MIN_INGREDIENT_LINES = 3
MIN_RECIPE_MESSAGE_LEN = 120
TITLE_MAX_LEN = 80
DEDUP_BODY_PREFIX_LEN = 200
DEFAULT_RECIPE_TITLE = "Sans titre"

INGREDIENTS_HEADERS = [
    re.compile(r"ingr[eé]dients?\s*:?\s*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^ingr[eé]dients?\s*:?\s*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"[\n\r]\s*ingr[eé]dients?\s*:?\s*[\n\r]", re.IGNORECASE),
]

INGREDIENTS_KEYWORDS = [
    re.compile(r"\bingr[eé]dients?\b", re.IGNORECASE),
    re.compile(r"\bindgredients?\b", re.IGNORECASE),
    re.compile(r"\bingrediants?\b", re.IGNORECASE),
    re.compile(r"\bingridiants?\b", re.IGNORECASE),
]

# Lowercase stems used to locate a section when no proper header exists
KEYWORD_STEMS = ["ingrédient", "ingredient", "indgredient", "ingrediant", "ingridiant"]

# "- item", "* item", "• item", "· item", "1. step", "2) step"
LIST_LINE = re.compile(r"^\s*(?:[-*•·]|\d+[.)])\s+")


def has_ingredients_keyword(text: Any) -> bool:
    if not text or not isinstance(text, str):
        return False
    return any(pattern.search(text) for pattern in INGREDIENTS_KEYWORDS)


def count_bullet_lines(block: str) -> int:
    """Counts non-blank lines that look like list items."""
    lines = [line for line in re.split(r"\r?\n", block) if line.strip()]
    return sum(1 for line in lines if LIST_LINE.match(line))


def find_ingredients_section(text: Any) -> Dict[str, Any]:
    """
    Finds where the ingredients section starts and counts list lines after it.

    The earliest header match wins. Without a header, the earliest keyword
    occurrence is used instead.
    Returns {"has_section": bool, "bullet_count": int, "section_start": int}.
    """
    if not text or not isinstance(text, str):
        return {"has_section": False, "bullet_count": 0, "section_start": -1}

    section_start = -1
    for pattern in INGREDIENTS_HEADERS:
        match = pattern.search(text)
        if match and (section_start == -1 or match.end() < section_start):
            section_start = match.end()

    if section_start == -1:
        if not has_ingredients_keyword(text):
            return {"has_section": False, "bullet_count": 0, "section_start": -1}
        lower = text.lower()
        positions = [p for p in (lower.find(stem) for stem in KEYWORD_STEMS) if p >= 0]
        section_start = min(positions) if positions else 0

    bullet_count = count_bullet_lines(text[section_start:])
    return {
        "has_section": bullet_count >= MIN_INGREDIENT_LINES,
        "bullet_count": bullet_count,
        "section_start": section_start,
    }


def _is_ingredients_header(line: str) -> bool:
    return any(pattern.search(line) for pattern in INGREDIENTS_HEADERS)


def extract_title(text: Any) -> str:
    """First non-empty line of 3+ characters that is not an ingredients header, capped at 80 chars."""
    if not text or not isinstance(text, str):
        return DEFAULT_RECIPE_TITLE
    for line in re.split(r"\r?\n", text):
        line = line.strip()
        if len(line) < 3:
            continue
        if _is_ingredients_header(line):
            continue
        if len(line) > TITLE_MAX_LEN:
            return line[:TITLE_MAX_LEN] + "…"
        return line
    return DEFAULT_RECIPE_TITLE


def deduplicate_candidates(candidates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keeps the first candidate per (normalized title, first 200 chars of text)."""
    seen = set()
    unique = []
    for candidate in candidates:
        title = (candidate.get("title") or "").strip().lower()
        body = (candidate.get("raw_text") or "")[:DEDUP_BODY_PREFIX_LEN]
        key = f"{title}|{body}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def _message_text(message: Any) -> Any:
    if not isinstance(message, dict):
        return None
    return message.get("content", message.get("text"))


def detect_recipes(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Returns [{"index", "title", "raw_text"}] for assistant messages that look
    like recipes. index is the position among assistant messages only.
    Never raises.
    """
    assistant_texts = [
        _message_text(m) for m in (messages or [])
        if isinstance(m, dict) and m.get("role") == "assistant" and isinstance(_message_text(m), str)
    ]

    candidates = []
    keyword_hits = 0
    section_hits = 0
    for index, text in enumerate(assistant_texts):
        has_keyword = has_ingredients_keyword(text)
        section = find_ingredients_section(text)
        if has_keyword:
            keyword_hits += 1
        if section["has_section"]:
            section_hits += 1

        long_enough = len(text.strip()) >= MIN_RECIPE_MESSAGE_LEN
        has_list_line = count_bullet_lines(text) >= 1
        if not has_keyword or not (long_enough or has_list_line):
            continue
        candidates.append({"index": index, "title": extract_title(text), "raw_text": text})

    unique = deduplicate_candidates(candidates)
    logger.debug(
        f"[RecipeDetector] assistant={len(assistant_texts)} keyword_hits={keyword_hits} "
        f"section_hits={section_hits} candidates={len(candidates)} unique={len(unique)}"
    )
    return unique
