"""Index arithmetic for the photo viewer and image carousels."""

from typing import Any, Dict, List


def wrap_index(index: int, count: int) -> int:
    if count <= 0:
        raise ValueError("Nothing to show")
    return index % count


def next_index(current: int, count: int) -> int:
    return wrap_index(current + 1, count)


def previous_index(current: int, count: int) -> int:
    return wrap_index(current - 1, count)


def viewer_frame(photos: List[Dict[str, Any]], index: int) -> Dict[str, Any]:
    """The photo at `index` (wrapped) with its neighbours and a counter label."""
    count = len(photos)
    current = wrap_index(index, count)
    return {
        "index": current,
        "count": count,
        "photo": photos[current],
        "previous_index": previous_index(current, count),
        "next_index": next_index(current, count),
        "position": f"{current + 1} / {count}",
    }
