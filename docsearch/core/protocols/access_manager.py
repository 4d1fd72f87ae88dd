"""Resource access protocol for dependency injection."""
from pathlib import Path
from typing import Awaitable, Callable, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class AccessManagerProtocol(Protocol):
    """Protocol for issuing and resolving persistable access tokens."""

    def grant_access(self, locator: str) -> str:
        """Issue an opaque token authorizing future reads of locator.

        Raises:
            ResourceAccessDeniedError: Locator cannot be authorized.
        """
        ...

    async def with_access(
        self,
        token: str,
        locator: str,
        operation: Callable[[Path], Awaitable[T]],
    ) -> T:
        """Run operation while access to locator is held.

        Access is released on every exit path.

        Raises:
            ResourceAccessDeniedError: Token is stale or unresolvable.
        """
        ...
