"""In-memory execution environment.

``Chain`` plays the part of the block environment the vault runs in: a clock,
an address allocator, and an ``atomic()`` scope. Every ledger registered with
the chain is snapshotted when a scope opens and restored if the scope raises,
so a failed call leaves no effects behind. State transitions are serialized by
a single lock; a nested scope on the same task joins the outer one and only
rolls back its own changes.
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger


class StatefulLedger:
    """Mixin for ledgers whose state the chain can snapshot and restore."""

    _state_fields: tuple[str, ...] = ()

    def _snapshot(self) -> dict[str, Any]:
        return {f: copy.deepcopy(getattr(self, f)) for f in self._state_fields}

    def _restore(self, state: dict[str, Any]) -> None:
        for field, value in state.items():
            setattr(self, field, value)


class Chain:
    def __init__(self, timestamp: int | None = None, *, address_seed: int = 0x1000):
        self.timestamp = int(time.time()) if timestamp is None else int(timestamp)
        self._ledgers: dict[str, StatefulLedger] = {}
        self._addresses = itertools.count(address_seed)
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task | None = None
        self.logger = logger.bind(component="chain")

    def next_address(self) -> str:
        return to_checksum_address(f"0x{next(self._addresses):040x}")

    def register(self, address: str, ledger: StatefulLedger) -> None:
        key = to_checksum_address(address)
        if key in self._ledgers:
            raise ValueError(f"Address {key} already registered")
        self._ledgers[key] = ledger

    def ledger_at(self, address: str) -> Any:
        try:
            return self._ledgers[to_checksum_address(address)]
        except KeyError:
            raise KeyError(f"No ledger deployed at {address}") from None

    async def now(self) -> int:
        return self.timestamp

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Time only moves forward")
        self.timestamp += int(seconds)
        return self.timestamp

    def _snapshot_all(self) -> dict[str, dict[str, Any]]:
        return {addr: ledger._snapshot() for addr, ledger in self._ledgers.items()}

    def _restore_all(self, snapshot: dict[str, dict[str, Any]]) -> None:
        # ledgers deployed inside the failed scope are discarded with it
        for addr in [a for a in self._ledgers if a not in snapshot]:
            del self._ledgers[addr]
        for addr, state in snapshot.items():
            self._ledgers[addr]._restore(state)

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        task = asyncio.current_task()
        if self._owner is not None and self._owner is task:
            snapshot = self._snapshot_all()
            try:
                yield
            except BaseException:
                self._restore_all(snapshot)
                raise
            return

        async with self._lock:
            self._owner = task
            snapshot = self._snapshot_all()
            try:
                yield
            except BaseException as exc:
                self._restore_all(snapshot)
                self.logger.debug(f"Reverted state transition: {exc!r}")
                raise
            finally:
                self._owner = None
