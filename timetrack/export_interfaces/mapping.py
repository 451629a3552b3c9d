"""Ordered account assignment for export interfaces.

Pure list operations behind the dual-list mapping editor. Every function
returns a new list and preserves membership apart from what it adds or
removes; ids never appear twice.
"""

from __future__ import annotations

from typing import Hashable, Iterable, Sequence, TypeVar

T = TypeVar("T", bound=Hashable)


def add_selected(assigned: Sequence[T], selected: Iterable[T]) -> list[T]:
    """Append *selected* ids that are not assigned yet, in the given order."""
    result = list(assigned)
    seen = set(result)
    for item in selected:
        if item not in seen:
            result.append(item)
            seen.add(item)
    return result


def remove_selected(assigned: Sequence[T], selected: Iterable[T]) -> list[T]:
    drop = set(selected)
    return [item for item in assigned if item not in drop]


def add_all(assigned: Sequence[T], available: Iterable[T]) -> list[T]:
    return add_selected(assigned, available)


def remove_all(assigned: Sequence[T]) -> list[T]:
    return []


def move_up(assigned: Sequence[T], selected: Iterable[T]) -> list[T]:
    """Move each selected id one slot up.

    A selected id only swaps with an unselected predecessor, so selected
    blocks move together and the first position stays put.
    """
    chosen = set(selected)
    order = list(assigned)
    for i in range(1, len(order)):
        if order[i] in chosen and order[i - 1] not in chosen:
            order[i - 1], order[i] = order[i], order[i - 1]
    return order


def move_down(assigned: Sequence[T], selected: Iterable[T]) -> list[T]:
    """Mirror of :func:`move_up`."""
    chosen = set(selected)
    order = list(assigned)
    for i in range(len(order) - 2, -1, -1):
        if order[i] in chosen and order[i + 1] not in chosen:
            order[i], order[i + 1] = order[i + 1], order[i]
    return order
