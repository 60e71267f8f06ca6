#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import sys

from inspect import (
    isasyncgenfunction,
    iscoroutinefunction,
    isgeneratorfunction,
)
from typing import Any, TypeVar

from wrapt import decorator

from ._scope import DeferScope

if sys.version_info >= (3, 9):
    from collections.abc import Callable
else:
    from typing import Callable

_CallableT = TypeVar("_CallableT", bound=Callable[..., Any])


def _scope_name(wrapped: Callable[..., Any], /) -> str:
    return getattr(wrapped, "__qualname__", None) or repr(wrapped)


@decorator
async def _async_deferrable(wrapped, instance, args, kwargs, /):
    with DeferScope(name=_scope_name(wrapped)):
        return await wrapped(*args, **kwargs)


@decorator
def _green_deferrable(wrapped, instance, args, kwargs, /):
    with DeferScope(name=_scope_name(wrapped)):
        return wrapped(*args, **kwargs)


# The generator wrappers delegate by hand instead of using `yield from`: the
# scope is current only while the wrapped body runs, not between yields.


@decorator
async def _async_generator_deferrable(wrapped, instance, args, kwargs, /):
    with DeferScope(name=_scope_name(wrapped)) as scope:
        generator = wrapped(*args, **kwargs)
        method, value = generator.asend, None

        while True:
            try:
                item = await method(value)
            except StopAsyncIteration:
                return

            scope._suspend()

            try:
                value = yield item
            except BaseException as exc:
                scope._resume()

                if isinstance(exc, GeneratorExit):
                    await generator.aclose()
                    raise

                method, value = generator.athrow, exc
            else:
                scope._resume()

                method = generator.asend


@decorator
def _green_generator_deferrable(wrapped, instance, args, kwargs, /):
    with DeferScope(name=_scope_name(wrapped)) as scope:
        generator = wrapped(*args, **kwargs)
        method, value = generator.send, None

        while True:
            try:
                item = method(value)
            except StopIteration as exc:
                return exc.value

            scope._suspend()

            try:
                value = yield item
            except BaseException as exc:
                scope._resume()

                if isinstance(exc, GeneratorExit):
                    generator.close()
                    raise

                method, value = generator.throw, exc
            else:
                scope._resume()

                method = generator.send


def deferrable(wrapped: _CallableT, /) -> _CallableT:
    """
    Run each call of *wrapped* inside its own :class:`DeferScope`, so that
    :func:`defer` can be used directly in the function body.

    Coroutine functions are supported: the scope spans the whole awaited body
    and is drained as soon as the coroutine finishes.

    Generator functions (including asynchronous ones) get a scope that opens
    on the first iteration and is drained when the generator is exhausted,
    fails, or is closed. Between iterations the caller's scope stays current.

    Example:
      >>> from defertools import defer
      >>> @deferrable
      ... def work(log):
      ...     defer(log.append, "cleanup")
      ...     log.append("work")
      >>> log = []
      >>> work(log)
      >>> log
      ['work', 'cleanup']
    """

    if not callable(wrapped):
        msg = f"a callable was expected, got {wrapped!r}"
        raise TypeError(msg)

    if isasyncgenfunction(wrapped):
        return _async_generator_deferrable(wrapped)
    elif isgeneratorfunction(wrapped):
        return _green_generator_deferrable(wrapped)
    elif iscoroutinefunction(wrapped):
        return _async_deferrable(wrapped)
    else:
        return _green_deferrable(wrapped)
