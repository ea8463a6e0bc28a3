"""Membership helpers for node-id sequences (paths and loops)."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable, Sequence


def has_repeats(ids: Sequence[Hashable]) -> bool:
    """Return True if any id occurs more than once in *ids*."""
    return len(set(ids)) < len(ids)


def same_members(a: Sequence[Hashable], b: Sequence[Hashable]) -> bool:
    """Return True if *a* and *b* contain the same ids, ignoring order and repeats."""
    return set(a) == set(b)


def is_proper_subset(a: Sequence[Hashable], b: Sequence[Hashable]) -> bool:
    """Return True if the ids of *a* form a strict subset of the ids of *b*."""
    return set(a) < set(b)
