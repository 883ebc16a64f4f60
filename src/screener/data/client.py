"""Abstract row source client interface.

Fetch and cache code depends only on this interface, keeping the
PostgREST/Supabase details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OrderBy:
    """Ordering for a table read. Nulls always sort last."""

    column: str
    ascending: bool = False


class RowSourceClient(ABC):
    """Abstract base class for the relational row source."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying HTTP session."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP session."""
        ...

    @abstractmethod
    async def select(
        self,
        table: str,
        order: OrderBy | None = None,
        filters: dict[str, Any] | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Read one range of rows from a table or view."""
        ...

    @abstractmethod
    async def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        """Call a database function and return its JSON result."""
        ...
