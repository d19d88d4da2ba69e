"""Success/failure result type for the semantic retrieval path.

The retrieval service tries semantic search first and falls back to the
keyword-only engine when anything on the embedding path fails.  Instead of
a nest of ``try``/``except`` blocks, the primary path is run through
:func:`attempt`, which turns an exception into an :class:`Err` value, and
the fallback is applied with :meth:`Ok.unwrap_or_else` /
:meth:`Err.unwrap_or_else`.

Example::

    outcome = await attempt(self._semantic_search(query, dialect, max_docs))
    if isinstance(outcome, Err):
        self._demote(outcome.error)
    docs = outcome.unwrap_or_else(lambda _exc: keyword_docs())
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar, Union

_T = TypeVar("_T")


@dataclass(frozen=True)
class Ok(Generic[_T]):
    """The primary path produced a value."""

    value: _T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap_or_else(self, fallback: Callable[[Exception], _T]) -> _T:
        return self.value


@dataclass(frozen=True)
class Err:
    """The primary path raised; ``error`` is the captured exception."""

    error: Exception

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap_or_else(self, fallback: Callable[[Exception], _T]) -> _T:
        return fallback(self.error)


Result = Union[Ok[_T], Err]


async def attempt(awaitable: Awaitable[_T]) -> Result[_T]:
    """Await *awaitable* and wrap its outcome in :class:`Ok` or :class:`Err`.

    Only :class:`Exception` subclasses are captured; cancellation and
    interpreter-exit signals still propagate.
    """
    try:
        return Ok(await awaitable)
    except Exception as exc:  # noqa: BLE001
        return Err(exc)
