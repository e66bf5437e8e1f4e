"""Computes a product's image list after a create or update."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .exceptions import UnknownImageReferenceError


@dataclass(slots=True, frozen=True)
class ImageReconciliation:
    final_images: list[str]
    orphaned: frozenset[str] = field(default_factory=frozenset)


def reconcile(
    previous: Sequence[str],
    kept: Sequence[str],
    new: Sequence[str],
    *,
    strict: bool = False,
) -> ImageReconciliation:
    """Kept images first in client order, then new uploads in upload order.

    Every previous image the client did not keep becomes an orphan. Kept
    references the product never owned are ignored by the diff unless
    ``strict`` is set, in which case they are refused.
    """
    if strict:
        owned = set(previous)
        unknown = [reference for reference in kept if reference not in owned]
        if unknown:
            raise UnknownImageReferenceError(unknown)

    return ImageReconciliation(
        final_images=[*kept, *new],
        orphaned=frozenset(previous) - frozenset(kept),
    )


__all__ = ["ImageReconciliation", "reconcile"]
