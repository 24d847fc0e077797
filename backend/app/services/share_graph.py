"""
Share Graph Resolver
--------------------
Turns the flat serialized array of a ChatGPT share page into an ordered
list of assistant messages.

Format notes:
1. The top-level array flattens key/value pairs: [..., "title", "Soup", "mapping", {...}, ...]
2. Inside objects a value is either literal data or an integer index into
   the same top-level array. Object keys may be encoded as "_<n>", where
   arr[n] holds the real key name.
3. Nothing guarantees that an index is in bounds, or that the graph is acyclic.

Flow:
    mapping {node_id: index} -> message node -> author -> role
                                              -> content -> parts -> text
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from app.services.share_errors import ShareParseError
from app.services.share_payload import unescape_string_literal

logger = logging.getLogger(__name__)

DEFAULT_CONVERSATION_TITLE = "Shared conversation"

# Hardening against pathological payloads
MAX_GRAPH_NODES = 500_000
MAX_COLLECT_DEPTH = 100

MIN_COLLECTED_TEXT_LEN = 20
FALLBACK_MIN_PAYLOAD_LEN = 100
FALLBACK_MIN_MESSAGE_LEN = 80

FALLBACK_RECIPE_STRING = re.compile(
    r'"(?:[^"\\]|\\.)*ingr[eé]dients?(?:[^"\\]|\\.){20,}"',
    re.IGNORECASE
)
_ENCODED_KEY = re.compile(r"^_(\d+)$")


# ============================================================================
# INDEX RESOLUTION
# ============================================================================

def is_index(value: Any) -> bool:
    # bool is an int subclass but never a reference
    return isinstance(value, int) and not isinstance(value, bool)


def get_node(arr: list, index: Any) -> Any:
    """arr[index] when index is in bounds, None otherwise (negative indices included)."""
    if not is_index(index) or index < 0 or index >= len(arr):
        return None
    return arr[index]


def resolve_maybe_index(value: Any, arr: list, visited: Optional[Set[int]] = None) -> Any:
    """
    Returns value itself when it is literal data, or the node it points to
    when it is an index. With a visited set, an index already seen resolves
    to None, which is what breaks cycles.
    """
    if not is_index(value):
        return value
    if visited is not None:
        if value in visited:
            return None
        visited.add(value)
    return get_node(arr, value)


def decoded_items(obj: dict, arr: list):
    """Yields (key, value) pairs of obj with "_<n>" keys decoded through arr."""
    for key, value in obj.items():
        name = key
        match = _ENCODED_KEY.match(key) if isinstance(key, str) else None
        if match:
            decoded = get_node(arr, int(match.group(1)))
            if isinstance(decoded, str):
                name = decoded
        yield name, value


def raw_field(obj: dict, name: str, arr: list) -> Any:
    if name in obj:
        return obj[name]
    for key, value in decoded_items(obj, arr):
        if key == name:
            return value
    return None


def resolve_field(obj: Any, name: str, arr: list) -> Any:
    """
    Reads a field whose value may itself be an index (one extra indirection).
    Used for author.role, content.parts and part.text.
    """
    if not isinstance(obj, dict):
        return None
    return resolve_maybe_index(raw_field(obj, name, arr), arr)


# ============================================================================
# CONVERSATION STRUCTURE
# ============================================================================

def find_title_and_mapping(arr: list) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    Scans the array as key/value pairs looking for "title" and "mapping".
    Later "title" pairs overwrite earlier ones.
    """
    title = ""
    mapping = None
    for i in range(0, len(arr) - 1, 2):
        key = arr[i]
        value = arr[i + 1]
        if key == "title" and isinstance(value, str):
            title = value.strip()
        if key == "mapping" and isinstance(value, dict):
            mapping = value
    return title, mapping


def collect_text_from_node(node: Any, arr: list, visited: Set[int], depth: int = 0) -> List[str]:
    """Depth-first collection of every string longer than 20 characters reachable from node."""
    texts = []
    if node is None or depth > MAX_COLLECT_DEPTH:
        return texts
    if isinstance(node, str):
        if len(node) > MIN_COLLECTED_TEXT_LEN:
            texts.append(node)
        return texts
    if is_index(node):
        return collect_text_from_node(resolve_maybe_index(node, arr, visited), arr, visited, depth + 1)
    if isinstance(node, list):
        for item in node:
            texts.extend(collect_text_from_node(item, arr, visited, depth + 1))
        return texts
    if isinstance(node, dict):
        for value in node.values():
            texts.extend(collect_text_from_node(value, arr, visited, depth + 1))
    return texts


def _resolve_role(author_index: int, arr: list) -> Optional[str]:
    author = get_node(arr, author_index)
    role = resolve_field(author, "role", arr)
    return role if isinstance(role, str) else None


def _part_texts(part: Any, arr: list, visited_inner: Set[int]) -> List[str]:
    if isinstance(part, str):
        return [part]
    if isinstance(part, dict):
        text = resolve_field(part, "text", arr)
        if isinstance(text, str):
            return [text]
        return collect_text_from_node(part, arr, visited_inner)
    if isinstance(part, list):
        return collect_text_from_node(part, arr, visited_inner)
    return []


def get_message_role_and_text(arr: list, node_index: int, visited: Set[int]) -> Optional[Dict[str, str]]:
    """
    Resolves one mapping entry into {"role": "assistant", "text": ...}.
    Returns None for visited nodes, non-assistant messages, and messages
    without text.
    """
    if node_index in visited:
        return None
    visited.add(node_index)

    node = get_node(arr, node_index)
    if not isinstance(node, dict):
        return None

    role = None
    content_index = None
    for key, value in decoded_items(node, arr):
        if value is None:
            continue
        if key == "author" and is_index(value):
            role = _resolve_role(value, arr)
        if key == "content" and is_index(value):
            content_index = value

    if role != "assistant":
        return None
    if content_index is None:
        return None

    content = get_node(arr, content_index)
    if not isinstance(content, dict):
        return None

    parts = resolve_field(content, "parts", arr)
    if parts is None:
        parts = []
    elif not isinstance(parts, list):
        parts = [parts]

    # Seeded from the outer pass but kept separate so that nodes reached
    # while collecting text stay available to sibling messages.
    visited_inner = set(visited)
    texts = []
    for part_ref in parts:
        part = resolve_maybe_index(part_ref, arr)
        texts.extend(_part_texts(part, arr, visited_inner))

    text = "\n".join(texts).strip()
    if not text:
        return None
    return {"role": "assistant", "text": text}


def extract_messages_from_mapping(arr: list, mapping: Dict[str, Any]) -> List[Dict[str, str]]:
    """Assistant messages in ascending node-index order, exact duplicates dropped."""
    visited = set()
    seen_text = set()
    messages = []
    indices = sorted(v for v in mapping.values() if is_index(v))
    for index in indices:
        message = get_message_role_and_text(arr, index, visited)
        if message and message["text"] not in seen_text:
            seen_text.add(message["text"])
            messages.append({"role": message["role"], "content": message["text"]})
    return messages


# ============================================================================
# LAST-RESORT FALLBACK
# ============================================================================

def extract_messages_from_payload_fallback(payload: str) -> List[Dict[str, str]]:
    """
    Regex scan of the raw payload for quoted strings mentioning ingredients.

    Only used when structured resolution found nothing: the share format is
    unversioned and this keeps imports working after a format change, at the
    cost of precision. An empty result here does not mean there is no recipe.
    """
    messages = []
    for match in FALLBACK_RECIPE_STRING.finditer(payload or ""):
        text = unescape_string_literal(match.group(0)[1:-1])
        if len(text) > FALLBACK_MIN_MESSAGE_LEN:
            messages.append({"role": "assistant", "content": text})
    return messages


# ============================================================================
# ENTRY POINTS
# ============================================================================

def resolve_graph(arr: Any, payload: str) -> Dict[str, Any]:
    """
    Resolves an already decoded payload.
    Returns {"title": str, "messages": [{"role", "content"}]}.
    """
    if not isinstance(arr, list):
        raise ShareParseError("Unexpected conversation format.")
    if len(arr) > MAX_GRAPH_NODES:
        raise ShareParseError("Conversation data is too large.")

    title, mapping = find_title_and_mapping(arr)
    if mapping is None:
        raise ShareParseError("No conversation mapping in share link.")

    messages = extract_messages_from_mapping(arr, mapping)
    if not messages and payload and len(payload) > FALLBACK_MIN_PAYLOAD_LEN:
        messages = extract_messages_from_payload_fallback(payload)
        logger.info(f"[ShareGraph] Mapping yielded no messages, fallback scan found {len(messages)}")

    logger.debug(f"[ShareGraph] nodes={len(arr)} mapping_entries={len(mapping)} messages={len(messages)}")
    return {
        "title": title or DEFAULT_CONVERSATION_TITLE,
        "messages": messages,
    }


def resolve_conversation(json_text: str) -> Dict[str, Any]:
    """Decodes json_text and resolves it. Raises ShareParseError on any failure."""
    try:
        arr = json.loads(json_text)
    except (TypeError, ValueError, RecursionError) as e:
        raise ShareParseError("Invalid conversation data from share link.") from e
    return resolve_graph(arr, json_text)
