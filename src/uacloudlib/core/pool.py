"""
asyncpg connection pool for the attribute store.

Connection setup and transient query failures share one backoff policy
([PoolRetryConfig][uacloudlib.core.pool.PoolRetryConfig]). When attempts run
out the last driver error is wrapped in
[ConnectionPoolError][uacloudlib.core.exceptions.ConnectionPoolError]. Query
errors such as bad syntax or an invalid regular expression are raised as-is
on the first attempt.

A closed pool is reopened on the next operation, and asyncpg gives every
operation its own connection, so one ``Pool`` can be shared freely.

Examples:
    ```python
    async with Pool.from_yaml("config/pool.yaml") as pool:
        ids = await pool.fetch("SELECT DISTINCT nodeset_id FROM metadata")
    ```
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Awaitable, Callable  # noqa: TC003
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Literal, TypeVar

import asyncpg
from pydantic import BaseModel, Field, SecretStr, model_validator

from .exceptions import ConnectionPoolError
from .logger import Logger
from .yaml import load_yaml


T = TypeVar("T")

_DEFAULT_PASSWORD_ENV = "POSTGRESQL_PASSWORD"  # pragma: allowlist secret

# create_pool raises TimeoutError when the host does not answer within the
# acquisition timeout.
_CONNECT_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    TimeoutError,
)
_TRANSIENT_QUERY_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.InterfaceError,
    asyncpg.ConnectionDoesNotExistError,
)

QueryOperation = Literal["fetch", "fetchrow", "fetchval", "execute"]


class DatabaseConfig(BaseModel):
    """Where to connect. The password comes from the ``password_env`` variable."""

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = Field(default="uacloudlib", min_length=1)
    user: str = Field(default="postgres", min_length=1)
    password_env: str = Field(default=_DEFAULT_PASSWORD_ENV, min_length=1)
    password: SecretStr
    ssl: Literal["disable", "prefer", "require"] = "prefer"

    @model_validator(mode="before")
    @classmethod
    def resolve_password(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "password" in data:
            return data
        env_var = data.get("password_env", _DEFAULT_PASSWORD_ENV)
        secret = os.getenv(env_var)
        if not secret:
            raise ValueError(f"{env_var} environment variable not set")
        return {**data, "password": SecretStr(secret)}


class PoolLimitsConfig(BaseModel):
    min_size: int = Field(default=1, ge=1, le=100)
    max_size: int = Field(default=10, ge=1, le=200)
    max_inactive_connection_lifetime: float = Field(default=300.0, ge=0.0)

    @model_validator(mode="after")
    def check_bounds(self) -> PoolLimitsConfig:
        if self.max_size < self.min_size:
            raise ValueError(f"max_size ({self.max_size}) is below min_size ({self.min_size})")
        return self


class PoolTimeoutsConfig(BaseModel):
    acquisition: float = Field(default=10.0, ge=0.1)


class PoolRetryConfig(BaseModel):
    """Backoff policy: ``initial_delay * 2**attempt`` or ``initial_delay * (attempt + 1)``,
    capped at ``max_delay``."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    initial_delay: float = Field(default=1.0, ge=0.0)
    max_delay: float = Field(default=10.0, ge=0.0)
    exponential_backoff: bool = True

    @model_validator(mode="after")
    def check_delays(self) -> PoolRetryConfig:
        if self.max_delay < self.initial_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) is below initial_delay ({self.initial_delay})"
            )
        return self


class ServerSettingsConfig(BaseModel):
    """Session settings sent with every connection (``statement_timeout`` in ms, 0 = none)."""

    application_name: str = "uacloudlib"
    timezone: str = "UTC"
    statement_timeout: int = Field(default=60_000, ge=0)


class PoolConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=lambda: DatabaseConfig.model_validate({}))
    limits: PoolLimitsConfig = Field(default_factory=PoolLimitsConfig)
    timeouts: PoolTimeoutsConfig = Field(default_factory=PoolTimeoutsConfig)
    retry: PoolRetryConfig = Field(default_factory=PoolRetryConfig)
    server_settings: ServerSettingsConfig = Field(default_factory=ServerSettingsConfig)


class Pool:
    """Lazily connected ``asyncpg.Pool`` with retry and reopen.

    Catalog code talks to [AttributeStore][uacloudlib.core.store.AttributeStore]
    rather than to this class directly.
    """

    def __init__(self, config: PoolConfig | None = None) -> None:
        self._config = config or PoolConfig()
        self._pool: asyncpg.Pool[asyncpg.Record] | None = None
        self._is_connected = False
        self._lock = asyncio.Lock()
        self._logger = Logger("pool")

    @classmethod
    def from_yaml(cls, config_path: str) -> Pool:
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> Pool:
        return cls(config=PoolConfig(**config_dict))

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    def _retry_delay(self, attempt: int) -> float:
        retry = self._config.retry
        factor = 2**attempt if retry.exponential_backoff else attempt + 1
        return float(min(retry.initial_delay * factor, retry.max_delay))

    async def _with_backoff(
        self,
        action: str,
        attempt_once: Callable[[], Awaitable[T]],
        retry_on: tuple[type[BaseException], ...],
    ) -> T:
        """Await ``attempt_once`` until it succeeds or the retry budget is spent.

        Raises:
            ConnectionPoolError: Every attempt failed with one of ``retry_on``.
        """
        attempts = self._config.retry.max_attempts
        for attempt in range(attempts):
            try:
                return await attempt_once()
            except retry_on as e:
                if attempt + 1 >= attempts:
                    self._logger.error(f"{action}_failed", attempts=attempts, error=str(e))
                    raise ConnectionPoolError(
                        f"{action} failed after {attempts} attempts: {e}"
                    ) from e
                delay = self._retry_delay(attempt)
                self._logger.warning(
                    f"{action}_retry", attempt=attempt + 1, delay_s=delay, error=str(e)
                )
                await asyncio.sleep(delay)
        raise ConnectionPoolError(f"{action} failed: no attempts were made")

    def _closed(self) -> bool:
        if self._pool is None:
            return True
        is_closing = getattr(self._pool, "is_closing", None)
        return bool(is_closing()) if callable(is_closing) else False

    async def _open(self) -> asyncpg.Pool[asyncpg.Record]:
        db = self._config.database
        limits = self._config.limits
        return await asyncpg.create_pool(
            host=db.host,
            port=db.port,
            database=db.database,
            user=db.user,
            password=db.password.get_secret_value(),
            ssl=db.ssl,
            min_size=limits.min_size,
            max_size=limits.max_size,
            max_inactive_connection_lifetime=limits.max_inactive_connection_lifetime,
            timeout=self._config.timeouts.acquisition,
            server_settings={
                key: str(value)
                for key, value in self._config.server_settings.model_dump().items()
            },
        )

    async def connect(self) -> None:
        """Open the pool unless it is already open.

        Raises:
            ConnectionPoolError: If every connection attempt failed.
        """
        async with self._lock:
            if self._is_connected and not self._closed():
                return
            db = self._config.database
            self._logger.info("connecting", host=db.host, port=db.port, database=db.database)
            self._pool = await self._with_backoff("connect", self._open, _CONNECT_ERRORS)
            self._is_connected = True
            self._logger.info("connected")

    async def ensure_connected(self) -> None:
        if self._is_connected and not self._closed():
            return
        if self._is_connected:
            self._logger.warning("pool_closed_reopening")
            self._is_connected = False
        await self.connect()

    async def close(self) -> None:
        async with self._lock:
            pool, self._pool, self._is_connected = self._pool, None, False
            if pool is not None:
                await pool.close()
                self._logger.info("closed")

    def acquire(self) -> AbstractAsyncContextManager[asyncpg.Connection[asyncpg.Record]]:
        """Borrow a connection; the pool must already be open.

        Raises:
            ConnectionPoolError: If the pool is not connected.
        """
        if not self._is_connected or self._pool is None:
            raise ConnectionPoolError("Pool not connected. Call connect() first.")
        return self._pool.acquire()  # type: ignore[return-value]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Connection inside a transaction that rolls back if the block raises."""
        await self.ensure_connected()
        async with self.acquire() as conn, conn.transaction():
            yield conn

    async def _run(
        self,
        operation: QueryOperation,
        query: str,
        args: tuple[Any, ...],
        timeout: float | None,  # noqa: ASYNC109
    ) -> Any:
        async def attempt_once() -> Any:
            await self.ensure_connected()
            async with self.acquire() as conn:
                return await getattr(conn, operation)(query, *args, timeout=timeout)

        return await self._with_backoff(operation, attempt_once, _TRANSIENT_QUERY_ERRORS)

    async def fetch(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> list[asyncpg.Record]:
        return await self._run("fetch", query, args, timeout)

    async def fetchrow(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> asyncpg.Record | None:
        return await self._run("fetchrow", query, args, timeout)

    async def fetchval(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> Any:
        return await self._run("fetchval", query, args, timeout)

    async def execute(
        self, query: str, *args: Any, timeout: float | None = None  # noqa: ASYNC109
    ) -> str:
        """Run a statement and return its status tag, e.g. ``"UPDATE 0"``."""
        return await self._run("execute", query, args, timeout)

    async def __aenter__(self) -> Pool:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def __repr__(self) -> str:
        db = self._config.database
        return f"Pool(host={db.host}, database={db.database}, connected={self._is_connected})"
