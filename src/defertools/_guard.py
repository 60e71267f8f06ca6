#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import logging
import sys

from typing import TYPE_CHECKING, Any

from ._scope import _note_failure, _safe_repr

if TYPE_CHECKING:
    from types import TracebackType

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self

    if sys.version_info >= (3, 9):
        from collections.abc import Callable
    else:
        from typing import Callable

logger = logging.getLogger(__name__)


class DeferGuard:
    """
    A context manager that owns exactly one deferred action and calls it once,
    when the block exits or when :meth:`close` is called, whichever comes
    first.

    Example:
      >>> import io
      >>> stream = io.StringIO()
      >>> with DeferGuard(stream.close):
      ...     stream.closed
      False
      >>> stream.closed
      True
    """

    __slots__ = (
        "__weakref__",
        "_action",
        "_args",
        "_kwargs",
        "_pending",
    )

    def __init__(
        self,
        action: Callable[..., object],
        /,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        if not callable(action):
            msg = f"a callable was expected, got {action!r}"
            raise TypeError(msg)

        self._action = action
        self._args = args
        self._kwargs = kwargs

        # popped by whoever runs the action first
        self._pending = [None]

    def __repr__(self, /) -> str:
        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        object_repr = f"{cls_repr}({_safe_repr(self._action)})"

        if self:
            extra = "pending"
        else:
            extra = "done"

        return f"<{object_repr} at {id(self):#x} [{extra}]>"

    def __bool__(self, /) -> bool:
        """
        Returns :data:`True` if the action has not been called yet.

        Example:
          >>> guard = DeferGuard(list)
          >>> bool(guard)
          True
          >>> guard.close()
          True
          >>> bool(guard)
          False
        """

        return bool(self._pending)

    def __enter__(self, /) -> Self:
        return self

    def __exit__(
        self,
        /,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_value is None:
            self.close()
            return

        try:
            self.close()
        except BaseException as exc:  # noqa: BLE001
            if exc is not exc_value:
                logger.debug(
                    "deferred action %s failed",
                    _safe_repr(self._action),
                    exc_info=exc,
                )

                _note_failure(exc_value, self._action, exc)

    def close(self, /) -> bool:
        """
        Call the action now if it has not been called yet.

        Returns :data:`True` if this call ran the action. Exceptions raised by
        the action propagate to the caller; the action is not retried.
        """

        try:
            self._pending.pop()
        except IndexError:
            return False

        self._action(*self._args, **self._kwargs)

        return True

    @property
    def action(self, /) -> Callable[..., object]:
        """
        The guarded action.
        """

        return self._action
