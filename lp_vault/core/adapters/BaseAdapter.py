from __future__ import annotations

import functools
from abc import ABC
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger

from lp_vault.core.errors import VaultError

T = TypeVar("T")


def reporting_read(
    fn: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[tuple[bool, T | str]]]:
    """Run a read helper and report ``(True, result)`` or ``(False, "Type: message")``.

    Vault and validation errors are expected outcomes of a report and are
    logged as warnings; anything else is logged with its traceback.
    """

    @functools.wraps(fn)
    async def wrapper(self: BaseAdapter, *args: Any, **kwargs: Any):
        try:
            return True, await fn(self, *args, **kwargs)
        except (VaultError, ValueError) as exc:
            self.logger.warning(f"{fn.__name__} failed: {exc}")
            return False, f"{type(exc).__name__}: {exc}"
        except Exception as exc:
            self.logger.opt(exception=exc).error(f"{fn.__name__} crashed")
            return False, f"{type(exc).__name__}: {exc}"

    return wrapper


class BaseAdapter(ABC):
    adapter_type: str | None = None

    def __init__(self, name: str, config: dict[str, Any] | None = None):
        self.name = name
        self.config = config or {}
        self.logger = logger.bind(adapter=self.__class__.__name__, name=name)
