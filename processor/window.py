"""Sliding previous/current/next windows over ordered pages."""
from itertools import chain
from typing import Generic, Iterator, Optional, Sequence, TypeVar

from processor.models import WindowTriple

T = TypeVar('T')


class WindowIterator(Generic[T]):
    """
    Restartable sequence of exactly len(items) window triples.

    The items are padded with a single None on each side and a width-3
    window slides across them, so the first triple has no previous item
    and the last has no next item.
    """

    def __init__(self, items: Sequence[T]):
        self._items = items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[WindowTriple]:
        padded: Iterator[Optional[T]] = chain([None], self._items, [None])
        previous = next(padded)
        current = next(padded)
        for following in padded:
            yield WindowTriple(previous, current, following)
            previous, current = current, following
