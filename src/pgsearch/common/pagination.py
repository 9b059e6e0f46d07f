"""Forward-only cursor pagination."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class CursorPageParams(BaseModel):
    """Parameters for loading one page of a cursor-paginated listing."""

    prefix: str | None = Field(
        None,
        description="Only return items whose id starts with this prefix",
    )
    cursor: str | None = Field(
        None,
        description="Only return items whose id sorts after this cursor",
    )
    limit: int | None = Field(
        None,
        ge=0,
        description="Maximum number of items per page",
    )


@dataclass(kw_only=True)
class CursorPageResponse(Generic[T]):
    """Raw response of a page loader."""

    data: list[T] = field(default_factory=list)
    next: str | None = None
    last: bool = True


PageLoader = Callable[[CursorPageParams], Awaitable[CursorPageResponse[T]]]


class CursorPage(Generic[T]):
    """
    A page of results with a continuation.

    `next()` re-invokes the loader with the same parameters and
    `cursor` set to the id of the last item on this page.
    """

    def __init__(
        self,
        *,
        params: CursorPageParams,
        response: CursorPageResponse[T],
        loader: PageLoader[T],
    ) -> None:
        """Initialize the page from a loader response."""
        self.params = params
        self.data: list[T] = response.data
        self._next = response.next
        self._last = response.last
        self._loader = loader

    @property
    def items(self) -> list[T]:
        """All items contained in this page."""
        return self.data

    @property
    def last(self) -> bool:
        """True if this is the last page in the sequence."""
        if self._last:
            return True
        if not self._next:
            return True
        return len(self.data) == 0

    @property
    def next_cursor(self) -> str | None:
        """Cursor for the next page, or None if this is the last page."""
        return None if self.last else self._next

    async def next(self) -> "CursorPage[T] | None":
        """Fetch the next page, or None if there is no next page."""
        if self.last:
            return None

        next_params = self.params.model_copy(update={"cursor": self._next})
        response = await self._loader(next_params)
        return CursorPage(params=next_params, response=response, loader=self._loader)

    def __iter__(self):
        """Iterate over the items of this page."""
        return iter(self.data)

    def __len__(self) -> int:
        """Return the number of items on this page."""
        return len(self.data)
