"""Lazy, restartable views over Stripe list calls."""

from typing import Callable, Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")

PAGE_SIZE = 100


class Listing(Generic[T]):
    """A finite sequence of models produced on demand.

    Nothing is fetched until iteration starts. Every new iteration issues
    a fresh list call, so a listing can be walked more than once. Only the
    first page (PAGE_SIZE entries) is ever returned.
    """

    def __init__(self, fetch: Callable[[], Iterable[T]]):
        self._fetch = fetch

    def __iter__(self) -> Iterator[T]:
        yield from self._fetch()

    def first(self) -> T | None:
        """Return the first entry, or None when the listing is empty."""
        return next(iter(self), None)
