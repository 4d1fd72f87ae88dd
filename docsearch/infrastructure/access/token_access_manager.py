import logging
import os
import time
from collections import Counter
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, Sequence, TypeVar

import jwt

from docsearch.core.exceptions import ResourceAccessDeniedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TOKEN_ALGORITHM = "HS256"


class TokenAccessManager:
    """Issues signed, persistable access tokens for local file locators.

    A token binds the resolved path to the file's device/inode at grant
    time, so a moved or replaced file makes the token stale.
    """

    def __init__(self, secret: str, allowed_roots: Optional[Sequence[str]] = None):
        """Initialize access manager.

        Args:
            secret: HMAC secret used to sign tokens; keep stable across restarts.
            allowed_roots: If given, only locators below these directories are granted.
        """
        if not secret:
            raise ValueError("Access token secret must not be empty")
        self._secret = secret
        self._roots = [Path(r).expanduser().resolve() for r in (allowed_roots or [])]
        self._active: Counter[str] = Counter()

    def grant_access(self, locator: str) -> str:
        path = self._resolve_locator(locator)

        if not path.is_file() or not os.access(path, os.R_OK):
            raise ResourceAccessDeniedError(f"Cannot read {locator}")
        if self._roots and not any(path.is_relative_to(root) for root in self._roots):
            raise ResourceAccessDeniedError(f"{locator} is outside the allowed roots")

        stat = path.stat()
        claims = {
            "path": str(path),
            "dev": stat.st_dev,
            "ino": stat.st_ino,
            "iat": int(time.time()),
        }
        logger.debug(f"Granted access to {path}")
        return jwt.encode(claims, self._secret, algorithm=TOKEN_ALGORITHM)

    def resolve(self, token: str, locator: str) -> Path:
        """Resolve token to the authorized path.

        Raises:
            ResourceAccessDeniedError: Token invalid, for another locator, or stale.
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.InvalidTokenError as e:
            raise ResourceAccessDeniedError(f"Unresolvable access token: {e}") from e

        path = self._resolve_locator(locator)
        if claims.get("path") != str(path):
            raise ResourceAccessDeniedError(f"Access token does not match {locator}")

        try:
            stat = path.stat()
        except OSError as e:
            raise ResourceAccessDeniedError(f"Access token is stale for {locator}: {e}") from e
        if (stat.st_dev, stat.st_ino) != (claims.get("dev"), claims.get("ino")):
            raise ResourceAccessDeniedError(f"Access token is stale for {locator}")

        return path

    def active_count(self, locator: str) -> int:
        """Number of currently held accesses to locator."""
        return self._active[str(self._resolve_locator(locator))]

    @asynccontextmanager
    async def access(self, token: str, locator: str) -> AsyncIterator[Path]:
        """Hold access to locator for the duration of the block."""
        path = self.resolve(token, locator)
        key = str(path)
        self._active[key] += 1
        try:
            yield path
        finally:
            self._active[key] -= 1
            if self._active[key] <= 0:
                del self._active[key]

    async def with_access(
        self,
        token: str,
        locator: str,
        operation: Callable[[Path], Awaitable[T]],
    ) -> T:
        async with self.access(token, locator) as path:
            return await operation(path)

    @staticmethod
    def _resolve_locator(locator: str) -> Path:
        if locator.startswith("file://"):
            locator = locator[len("file://"):]
        return Path(locator).expanduser().resolve()
