"""
TASKBOARD - Sort Projection
===========================
Derives the display order of a column's tasks. Never mutates stored order.

Favorites always come first. Under "normal" each partition keeps manual
order; under "A-Z" / "Z-A" each partition is sorted by name.
"""

from typing import Iterable, List

from .schema import Column, SortOption, Task


def _name_key(task: Task):
    # Case-insensitive first, raw name breaks ties deterministically
    return (task.name.casefold(), task.name)


def sort_tasks(tasks: Iterable[Task], sort_option: SortOption = SortOption.NORMAL) -> List[Task]:
    """Pure projection of (task list, sort option) to display order"""
    tasks = list(tasks)
    favorites = [t for t in tasks if t.is_favorite]
    others = [t for t in tasks if not t.is_favorite]

    sort_option = SortOption(sort_option)
    if sort_option != SortOption.NORMAL:
        descending = sort_option == SortOption.Z_A
        # sorted() is stable, including with reverse=True
        favorites = sorted(favorites, key=_name_key, reverse=descending)
        others = sorted(others, key=_name_key, reverse=descending)

    return favorites + others


def sorted_columns(columns: Iterable[Column]) -> List[Column]:
    """Columns in display order (by `order`, ties keep stored order)"""
    return sorted(columns, key=lambda c: c.order)
