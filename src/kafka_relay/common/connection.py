"""
Retry-bounded connection state machine shared by the consumer and producer.

An adapter owns at most one live client handle. Each consumer stream and
each producer send runs against a fresh ReconnectBudget of
``reconnect_count + 1`` attempts:

- a failed connect attempt consumes one unit
- a fatal transport error discards the handle and consumes one unit
- successes, codec errors and non-fatal transport errors consume nothing

When the budget reaches zero the adapter is EXHAUSTED and the last
recorded fatal/connect error is reported to the caller.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Generic, TypeVar

from core.errors.exceptions import ConnectError, PipelineError
from kafka_relay.common.builder import KafkaClientBuilder
from kafka_relay.common.metrics import (
    record_budget_exhausted,
    record_connect_attempt,
    record_fatal_reconnect,
    update_connection_status,
)
from kafka_relay.config import KafkaConfig

logger = logging.getLogger(__name__)

H = TypeVar("H")


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    EXHAUSTED = "exhausted"


class ReconnectBudget:
    """Attempts left for one stream or send call (first attempt included)."""

    def __init__(self, reconnect_count: int):
        if reconnect_count < 0:
            raise ValueError(f"reconnect_count must be >= 0, got {reconnect_count}")
        self.limit = reconnect_count + 1
        self.remaining = self.limit
        self.last_error: PipelineError | None = None

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    @property
    def used(self) -> int:
        return self.limit - self.remaining

    def consume(self, error: PipelineError) -> None:
        self.last_error = error
        self.remaining -= 1

    def __repr__(self) -> str:
        return f"ReconnectBudget(remaining={self.remaining}, limit={self.limit})"


class ManagedConnection(ABC, Generic[H]):
    """Base class owning zero-or-one client handle and driving reconnects.

    Subclasses implement ``_open_handle`` to build and start a handle.
    """

    role = "client"

    def __init__(
        self,
        config: KafkaConfig,
        builder: KafkaClientBuilder | None = None,
        sleep_between_reconnects: bool = False,
    ):
        self.config = config
        self.reconnect_count = config.reconnect_count
        self.reconnect_sleep_ms = config.reconnect_sleep_ms
        self.sleep_between_reconnects = sleep_between_reconnects
        self._builder = builder or KafkaClientBuilder(config)
        self._handle: H | None = None
        self._budget: ReconnectBudget | None = None
        self.connect_attempts = 0

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    @property
    def budget(self) -> ReconnectBudget | None:
        """Budget of the current (or most recent) stream/send call."""
        return self._budget

    @property
    def state(self) -> ConnectionState:
        if self._handle is not None:
            return ConnectionState.CONNECTED
        if self._budget is not None and self._budget.exhausted:
            return ConnectionState.EXHAUSTED
        return ConnectionState.DISCONNECTED

    def _new_budget(self) -> ReconnectBudget:
        self._budget = ReconnectBudget(self.reconnect_count)
        return self._budget

    @abstractmethod
    async def _open_handle(self, *args: Any) -> H:
        """Build and start a new client handle."""

    async def _connect(self, *args: Any) -> None:
        """Tear down any existing handle, then build and start a new one."""
        await self._discard_handle()
        self.connect_attempts += 1

        try:
            handle = await self._open_handle(*args)
        except Exception as e:
            record_connect_attempt(self.role, success=False)
            raise ConnectError(
                f"Kafka {self.role} connection failed: {e}",
                cause=e,
                context={"service": f"kafka_{self.role}", "error_type": type(e).__name__},
            ) from e

        self._handle = handle
        record_connect_attempt(self.role, success=True)
        update_connection_status(self.role, connected=True)
        logger.info(
            "Kafka %s connected",
            self.role,
            extra={
                "bootstrap_servers": self.config.bootstrap_servers,
                "attempt": self.connect_attempts,
            },
        )

    async def _try_connect(self, budget: ReconnectBudget, *args: Any) -> bool:
        """One connect attempt against the budget. Returns True when connected."""
        if self.sleep_between_reconnects and budget.used > 0:
            await asyncio.sleep(self.reconnect_sleep_ms / 1000)

        try:
            await self._connect(*args)
        except ConnectError as e:
            self._consume(budget, e)
            return False
        return True

    async def _on_fatal(self, budget: ReconnectBudget, error: PipelineError) -> None:
        """Discard the handle after a fatal transport error."""
        await self._discard_handle()
        record_fatal_reconnect(self.role)
        self._consume(budget, error)

    def _consume(self, budget: ReconnectBudget, error: PipelineError) -> None:
        budget.consume(error)
        error.context.setdefault("reconnect_attempts", budget.used)

        if budget.exhausted:
            record_budget_exhausted(self.role)
            logger.error(
                "Kafka %s reconnect budget exhausted",
                self.role,
                extra={
                    "total_attempts": budget.used,
                    "max_attempts": budget.limit,
                    "error_category": error.category.value,
                    "error_message": str(error)[:200],
                },
            )
            return

        logger.warning(
            "Kafka %s connection lost, will reconnect",
            self.role,
            extra={
                "attempt": budget.used,
                "max_attempts": budget.limit,
                "error_category": error.category.value,
                "error_message": str(error)[:200],
            },
        )

    async def _close_handle(self, handle: H) -> None:
        # Errors during stop are logged but not re-raised to avoid masking original exceptions
        try:
            await handle.stop()
        except Exception as e:
            logger.warning(
                "Error stopping Kafka %s handle",
                self.role,
                extra={"error": str(e)},
                exc_info=True,
            )

    async def _discard_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        await self._close_handle(handle)
        update_connection_status(self.role, connected=False)

    async def stop(self) -> None:
        """Release the client handle, if any."""
        if self._handle is None:
            logger.debug("Kafka %s not connected", self.role)
            return
        logger.info("Stopping Kafka %s", self.role)
        await self._discard_handle()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
        return False


__all__ = [
    "ConnectionState",
    "ManagedConnection",
    "ReconnectBudget",
]
