from typing import Any, Dict, List, Optional


def build_import_plan(candidates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Orders detected candidates by message position and suggests a parent for
    each one: recipes in a chat are usually iterations of the previous one.

    import_index is the candidate's position among assistant messages, the
    identity the client sends back when it selects what to import.
    """
    ordered = sorted(candidates, key=lambda c: c["index"])
    plan = []
    previous_index = None
    for candidate in ordered:
        plan.append({
            "import_index": candidate["index"],
            "title": candidate["title"],
            "raw_text": candidate["raw_text"],
            "suggested_parent_index": previous_index,
        })
        previous_index = candidate["index"]
    return plan


def build_parent_map_from_selection(selection: List[Dict[str, Any]]) -> Dict[int, Optional[int]]:
    """
    Maps each selected import_index to the parent chosen by the user.
    None means the recipe is imported without a parent.
    """
    parent_map = {}
    for item in selection:
        parent_map[item["import_index"]] = item.get("parent_import_index")
    return parent_map
