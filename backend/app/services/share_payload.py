"""
Share Payload Extraction
------------------------
Locates the conversation state that a ChatGPT share page streams into the
browser and returns it as JSON text.

The page carries the state inside a framework-injected inline script:

    <script nonce="...">...streamController.enqueue("[\"title\",\"Soup\",...]")...</script>

The argument is a JS string literal, so the JSON inside it is escaped one
extra level. This module only knows about that single embedding convention.
"""

import json
import logging
import re
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

ENQUEUE_MARKER = 'streamController.enqueue("'

# Framework scripts carry a nonce; third-party scripts usually don't.
NONCE_SCRIPT_PATTERN = re.compile(r'<script[^>]*nonce="[^"]*"[^>]*>([\s\S]*?)</script>', re.IGNORECASE)

_ESCAPED_QUOTE_OR_BACKSLASH = re.compile(r'\\(["\\])')
_NUMERIC_PREFIX = re.compile(r"^\d+:\s*")


def unescape_string_literal(raw: str) -> str:
    """
    Decodes \\" -> " and \\\\ -> \\ in a single left-to-right pass.
    Every other escape sequence (\\n, \\u00e9, ...) is left untouched, it is
    still valid JSON once the outer literal is gone.
    """
    return _ESCAPED_QUOTE_OR_BACKSLASH.sub(r"\1", raw)


def find_conversation_scripts(html: str) -> List[str]:
    """Bodies of nonce scripts mentioning both serverResponse and mapping, in document order."""
    if not html or not isinstance(html, str):
        return []
    scripts = []
    for match in NONCE_SCRIPT_PATTERN.finditer(html):
        tag = match.group(0)
        if "serverResponse" in tag and "mapping" in tag:
            scripts.append(match.group(1))
    return scripts


def extract_enqueue_payloads(script_content: str) -> List[str]:
    """
    Extracts every enqueue("...") string argument from a script body, un-escaped.
    A backslash always consumes the following character, so \\" never ends
    the literal. A literal left open at end of input is returned as scanned.
    """
    payloads = []
    search_from = 0
    length = len(script_content)

    while search_from < length:
        idx = script_content.find(ENQUEUE_MARKER, search_from)
        if idx == -1:
            break
        start = idx + len(ENQUEUE_MARKER)
        i = start
        while i < length:
            char = script_content[i]
            if char == "\\":
                i += 2
                continue
            if char == '"':
                break
            i += 1
        end = min(i, length)
        if end > start:
            payloads.append(unescape_string_literal(script_content[start:end]))
        search_from = end + 1

    return payloads


def extract_payload(html: str) -> Optional[str]:
    """
    First enqueue payload of the first qualifying script.
    None when no script qualifies or none of them contains the marker.
    """
    for script in find_conversation_scripts(html):
        payloads = extract_enqueue_payloads(script)
        if payloads:
            return payloads[0]
    return None


def collect_payload_candidates(html: str) -> List[str]:
    """
    All payload strings worth trying to parse, longest first.

    Newer pages split the state over several enqueue() calls, so for each
    qualifying script the concatenation of its chunks is offered before the
    individual chunks.
    """
    scripts = find_conversation_scripts(html)
    raw_candidates = []
    chunk_count = 0
    for script in scripts:
        chunks = extract_enqueue_payloads(script)
        chunk_count += len(chunks)
        if chunks:
            raw_candidates.append("".join(chunks))
            raw_candidates.extend(chunks)

    candidates = []
    seen = set()
    for candidate in raw_candidates:
        candidate = candidate.strip()
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        candidates.append(candidate)
    # sorted() is stable: equal lengths keep document order
    candidates = sorted(candidates, key=len, reverse=True)

    logger.debug(f"[SharePayload] scripts={len(scripts)} chunks={chunk_count} candidates={len(candidates)}")
    return candidates


def _loads_array(value: str):
    try:
        parsed = json.loads(value)
    except (ValueError, RecursionError):
        return None, False
    if isinstance(parsed, list):
        return parsed, False
    if isinstance(parsed, str):
        # Some pages double-encode the state as a JSON string
        try:
            parsed_twice = json.loads(parsed)
        except (ValueError, RecursionError):
            return None, False
        if isinstance(parsed_twice, list):
            return parsed_twice, True
    return None, False


def parse_conversation_array(payload: str) -> Optional[Tuple[list, str]]:
    """
    Decodes a payload into the flat serialized array.
    Tries the payload as is, then without a "<digits>:" stream prefix, then the
    slice between the first "[" and the last "]".
    Returns (array, strategy) or None.
    """
    if not payload or not isinstance(payload, str):
        return None
    trimmed = payload.strip()
    if not trimmed:
        return None

    attempts = [(trimmed, "direct")]
    without_prefix = _NUMERIC_PREFIX.sub("", trimmed, count=1)
    if without_prefix != trimmed:
        attempts.append((without_prefix, "strip-numeric-prefix"))
    first_bracket = trimmed.find("[")
    last_bracket = trimmed.rfind("]")
    if first_bracket != -1 and last_bracket > first_bracket:
        attempts.append((trimmed[first_bracket:last_bracket + 1], "slice-array-brackets"))

    tried = set()
    for value, strategy in attempts:
        if not value or value in tried:
            continue
        tried.add(value)
        arr, double_parsed = _loads_array(value)
        if arr is not None:
            return arr, f"{strategy}-double-parse" if double_parsed else strategy

    return None
