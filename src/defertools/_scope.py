#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import logging
import sys

from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Final, TypeVar

from .meta import DEFAULT, DefaultType

if sys.version_info < (3, 11):
    from exceptiongroup import BaseExceptionGroup

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

_T = TypeVar("_T")
_CallableT = TypeVar("_CallableT", bound="Callable[..., object]")

logger = logging.getLogger(__name__)

_current_scope_cvar: Final[ContextVar[DeferScope | None]] = ContextVar(
    "_current_scope_cvar",
    default=None,
)


def _add_note(exc: BaseException, note: str, /) -> None:
    if sys.version_info >= (3, 11):
        exc.add_note(note)
    else:  # the attribute is rendered by `exceptiongroup`'s traceback patch
        try:
            notes = exc.__notes__
        except AttributeError:
            exc.__notes__ = notes = []

        notes.append(note)


def _safe_repr(obj: object, /) -> str:
    try:
        return repr(obj)
    except Exception:  # noqa: BLE001
        return object.__repr__(obj)


def _note_failure(
    exc_value: BaseException,
    action: object,
    failure: BaseException,
    /,
) -> None:
    note = (
        f"deferred action {_safe_repr(action)} raised {_safe_repr(failure)}"
    )

    try:
        _add_note(exc_value, note)
    except Exception:  # noqa: BLE001
        logger.debug(
            "cannot attach a note to %s",
            object.__repr__(exc_value),
            exc_info=True,
        )


class DeferScope:
    """
    A scope that collects deferred actions and runs them in reverse order of
    registration (LIFO) when it exits.

    Every registered action is invoked exactly once, whether the scope exits
    normally or due to an exception. A failing action does not prevent the
    remaining ones from running. Once all actions have run:

    * if the protected block raised, that exception propagates unchanged and
      the failures of the actions are attached to it as notes;
    * otherwise, if any action failed, a :exc:`BaseExceptionGroup` with all
      of the failures (in the order they occurred) is raised.

    The failures of the last drain are also available via :attr:`failures`.

    Example:
      >>> log = []
      >>> with DeferScope() as scope:
      ...     for item in ("3", "2", "1"):
      ...         _ = scope.defer(log.append, item)
      >>> log
      ['1', '2', '3']
    """

    __slots__ = (
        "__weakref__",
        "_actions",
        "_failures",
        "_name",
        "_state",
        "_token",
    )

    def __init__(self, /, *, name: str | None = None) -> None:
        self._actions = []
        self._failures = ()
        self._name = name
        self._state = "open"
        self._token = None

    def __repr__(self, /) -> str:
        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        if self._name is None:
            object_repr = f"{cls_repr}()"
        else:
            object_repr = f"{cls_repr}(name={self._name!r})"

        if self._state == "closed":
            extra = "closed"
        else:
            extra = f"{self._state}, actions={len(self._actions)}"

        return f"<{object_repr} at {id(self):#x} [{extra}]>"

    def __len__(self, /) -> int:
        """
        Returns the number of actions that are still pending.

        Example:
          >>> scope = DeferScope()
          >>> _ = scope.defer(print, "bye")
          >>> len(scope)
          1
        """

        return len(self._actions)

    def __enter__(self, /) -> Self:
        if self._state == "closed":
            msg = "this scope is already closed"
            raise RuntimeError(msg)

        if self._state != "open":
            msg = "this scope is already active"
            raise RuntimeError(msg)

        self._state = "active"
        self._token = _current_scope_cvar.set(self)

        return self

    def __exit__(
        self,
        /,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            if self._state == "active":
                failures = self._drain(exc_value)
            else:  # closed explicitly inside the block
                failures = []
        finally:
            token, self._token = self._token, None

            if token is not None:
                _current_scope_cvar.reset(token)

        if failures and exc_value is None:
            msg = "errors in deferred actions"
            raise BaseExceptionGroup(msg, failures)

    def _drain(
        self,
        exc_value: BaseException | None,
        /,
    ) -> list[BaseException]:
        self._state = "draining"

        actions = self._actions
        failures = []
        count = 0

        # Actions registered during the drain land on the same stack, so the
        # loop picks them up as well.
        while actions:
            action, args, kwargs = actions.pop()
            count += 1

            try:
                action(*args, **kwargs)
            except BaseException as exc:  # noqa: BLE001
                if exc is exc_value:
                    continue  # re-raised by the action itself

                logger.debug(
                    "deferred action %s of %r failed",
                    _safe_repr(action),
                    self,
                    exc_info=exc,
                )

                failures.append(exc)

                if exc_value is not None:
                    _note_failure(exc_value, action, exc)

        self._state = "closed"
        self._failures = tuple(failures)

        logger.debug("drained %d deferred action(s) of %r", count, self)

        return failures

    # A generator body runs in the context of whoever resumes it, so while it
    # is suspended the scope must not stay current for the caller.

    def _suspend(self, /) -> None:
        token, self._token = self._token, None

        if token is not None:
            _current_scope_cvar.reset(token)

    def _resume(self, /) -> None:
        self._token = _current_scope_cvar.set(self)

    def defer(
        self,
        action: _CallableT,
        /,
        *args: Any,
        **kwargs: Any,
    ) -> _CallableT:
        """
        Register *action* to be called with *args* and *kwargs* when the scope
        exits.

        The arguments are captured now, not at exit time. Returns *action*,
        so the method can also be used as a decorator.

        Raises:
          TypeError:
            if *action* is not callable.
          RuntimeError:
            if the scope is already closed.
        """

        if not callable(action):
            msg = f"a callable was expected, got {action!r}"
            raise TypeError(msg)

        if self._state == "closed":
            msg = "this scope is already closed"
            raise RuntimeError(msg)

        self._actions.append((action, args, kwargs))

        return action

    def close(self, /) -> None:
        """
        Run all pending actions now, without waiting for the scope to exit.

        Intended for use in a ``try``/``finally`` statement when the scope is
        not used as a context manager. Does nothing if the scope is already
        closed (or is being drained).

        Raises:
          BaseExceptionGroup:
            if any action failed.
        """

        if self._state in {"draining", "closed"}:
            return

        failures = self._drain(None)

        if failures:
            msg = "errors in deferred actions"
            raise BaseExceptionGroup(msg, failures)

    @property
    def name(self, /) -> str | None:
        """
        The name used in the representation and in log messages.
        """

        return self._name

    @property
    def closed(self, /) -> bool:
        """
        :data:`True` once all actions have been drained.
        """

        return self._state == "closed"

    @property
    def failures(self, /) -> tuple[BaseException, ...]:
        """
        The exceptions raised by actions during the last drain, in the order
        they occurred.
        """

        return self._failures


def open_scope(*, name: str | None = None) -> DeferScope:
    """
    Begin a new deferred-action scope.

    Example:
      >>> with open_scope(name="copy") as scope:
      ...     _ = scope.defer(print, "closing")
      closing
    """

    return DeferScope(name=name)


def current_scope(default: _T | DefaultType = DEFAULT) -> DeferScope | _T:
    """
    Return the innermost active scope of the current context.

    If there is none, *default* is returned if it was passed, otherwise
    :exc:`LookupError` is raised.
    """

    scope = _current_scope_cvar.get()

    if scope is None:
        if default is DEFAULT:
            msg = "no deferred-action scope is active in the current context"
            raise LookupError(msg)

        return default

    return scope


def defer(action: _CallableT, /, *args: Any, **kwargs: Any) -> _CallableT:
    """
    Register *action* in the innermost active scope of the current context.

    Raises:
      RuntimeError:
        if there is no active scope.
    """

    scope = _current_scope_cvar.get()

    if scope is None:
        msg = "defer() called outside of a deferred-action scope"
        raise RuntimeError(msg)

    return scope.defer(action, *args, **kwargs)
