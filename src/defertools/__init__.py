#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

"""
Scoped deferred execution for Python

This package provides a ``defer`` in the spirit of Go, Java's ``finally``
and Ruby's ``ensure``: cleanup actions are declared right next to the code
that acquires a resource, and are guaranteed to run in reverse order of
registration when the enclosing scope exits, whether normally or due to an
exception.

* :class:`DeferScope` / :func:`open_scope` collect any number of actions
* :func:`defer` registers an action in the innermost active scope
* :func:`deferrable` turns every call of a function into a scope
* :class:`DeferGuard` owns exactly one action
"""

__author__: str = "Ilya Egorov <0x42005e1f@gmail.com>"
__version__: str  # dynamic
__version_tuple__: "tuple[int | str, ...]"  # dynamic

from . import (  # noqa: F401
    meta,
)
from ._decorator import (
    deferrable as deferrable,
)
from ._guard import (
    DeferGuard as DeferGuard,
)
from ._scope import (
    DeferScope as DeferScope,
    current_scope as current_scope,
    defer as defer,
    open_scope as open_scope,
)

# prepare for external use
meta.export(globals())
meta.export_dynamic(globals(), "__version__", "._version.version")
meta.export_dynamic(globals(), "__version_tuple__", "._version.version_tuple")
