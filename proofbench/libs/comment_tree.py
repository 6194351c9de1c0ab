"""Builds the reply tree shown under a video from a flat list of comments.

The store keeps comments flat (``parent_id`` is a plain self reference and does
not limit nesting). The depth cap is applied here: a node sitting at
``max_depth`` keeps an empty ``replies`` list, so anything nested below it is
not shown.
"""
import uuid
from typing import Any, Iterable, Mapping, Optional


def can_modify_comment(viewer_id: Optional[uuid.UUID], author_id: uuid.UUID) -> bool:
    """Only the author edits or deletes a comment, no role overrides this."""
    if viewer_id is None:
        return False
    return str(viewer_id) == str(author_id)


def build_comment_tree(
    comments: Iterable[Mapping[str, Any]],
    *,
    viewer_id: Optional[uuid.UUID] = None,
    max_depth: int = 1,
) -> list[dict[str, Any]]:
    """
    Arrange comments (oldest first) into root comments with nested ``replies``.
    - replies keep the chronological order of the input
    - a reply whose parent is missing is dropped
    - each node gets ``is_owner`` / ``can_edit`` / ``can_delete`` for ``viewer_id``
    """
    nodes: dict[str, dict[str, Any]] = {}
    ordered: list[dict[str, Any]] = []

    # 1️⃣ index every comment
    for comment in comments:
        node = dict(comment)
        owner = can_modify_comment(viewer_id, node["user_id"])
        node.update(replies=[], is_owner=owner, can_edit=owner, can_delete=owner)
        nodes[str(node["id"])] = node
        ordered.append(node)

    # 2️⃣ attach replies to their parent
    roots: list[dict[str, Any]] = []
    for node in ordered:
        parent_id = node.get("parent_id")
        if parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(str(parent_id))
        if parent is not None:
            parent["replies"].append(node)

    # 3️⃣ cut below max_depth
    for root in roots:
        _truncate(root, depth=0, max_depth=max_depth)
    return roots


def _truncate(node: dict[str, Any], depth: int, max_depth: int) -> None:
    if depth >= max_depth:
        node["replies"] = []
        return
    for reply in node["replies"]:
        _truncate(reply, depth + 1, max_depth)


def count_comments(tree: Iterable[Mapping[str, Any]]) -> int:
    total = 0
    for node in tree:
        total += 1 + count_comments(node.get("replies") or [])
    return total
