#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import sys

from importlib import import_module
from types import FunctionType, ModuleType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    if sys.version_info >= (3, 9):  # PEP 585
        from collections.abc import MutableMapping
    else:
        from typing import MutableMapping


def _issubmodule(module_name: str | None, package_name: str, /) -> bool:
    return module_name is not None and (
        module_name == package_name
        or module_name.startswith(f"{package_name}.")
    )


def _export_one(package_name: str, name: str, value: object, /) -> None:
    # Only classes and functions defined inside the package are updated;
    # foreign objects and singletons keep their attributes.

    if isinstance(value, type):
        if not _issubmodule(value.__module__, package_name):
            return

        for attr_value in {**vars(value)}.values():
            if isinstance(attr_value, property):
                accessors = (attr_value.fget, attr_value.fset, attr_value.fdel)

                for func in accessors:
                    if func is not None and _issubmodule(
                        func.__module__,
                        package_name,
                    ):
                        func.__module__ = package_name
            elif isinstance(attr_value, FunctionType):
                if _issubmodule(attr_value.__module__, package_name):
                    attr_value.__module__ = package_name

        value.__name__ = name
        value.__qualname__ = name
        value.__module__ = package_name
    elif isinstance(value, FunctionType):
        if not _issubmodule(value.__module__, package_name):
            return

        value.__name__ = name
        value.__qualname__ = name
        value.__module__ = package_name


def export(
    package_namespace: ModuleType | MutableMapping[str, object],
    /,
) -> None:
    """
    Prepare *package_namespace* for external use.

    Every public member of the package that is defined in one of its
    non-public submodules (``package._impl``) is updated so that it looks as
    if it was defined directly in the package. Public subpackages are
    processed recursively. Additionally, a sorted :keyword:`__all__ <import>`
    is built from the names of all public members that are not submodules.

    Typically used as ``export(globals())`` near the end of ``__init__.py``.
    This keeps representations (which matter most for exceptions and
    scopes in log messages) and pickling stable across internal changes.
    """

    if TYPE_CHECKING:
        return

    if isinstance(package_namespace, ModuleType):
        package_name = package_namespace.__name__
        package_namespace = vars(package_namespace)
    else:
        package_name = package_namespace["__name__"]

    public_names = []

    for name, value in {**package_namespace}.items():
        if name.startswith("_"):
            continue

        if isinstance(value, ModuleType):
            if value.__name__.rpartition(".")[0] == package_name:
                export(value)
        else:
            public_names.append(name)

            _export_one(package_name, name, value)

    public_names.sort()
    public_names.sort(key=str.isupper, reverse=True)

    package_namespace.setdefault("__all__", tuple(public_names))


def export_dynamic(
    module_namespace: MutableMapping[str, object],
    link_name: str,
    target: str,
    /,
) -> None:
    """
    Register a lazily imported attribute *link_name* in *module_namespace*.

    *target* is a relative path (``._version.version``) resolved against the
    module's package. On first access the attribute is imported, cached in
    the namespace and returned. If the target module does not exist, an
    :exc:`AttributeError` chained to the import error is raised instead.

    Raises:
      RuntimeError:
        if *link_name* is already registered.
    """

    module_name = module_namespace["__name__"]

    registry = module_namespace.get("_dynamic_exports")

    if registry is None:
        registry = module_namespace.setdefault("_dynamic_exports", {})

        def __getattr__(name: str) -> object:
            try:
                target_module_name, target_name = registry[name]
            except KeyError:
                msg = f"module {module_name!r} has no attribute {name!r}"
                raise AttributeError(msg) from None

            try:
                target_module = import_module(target_module_name, module_name)
            except ModuleNotFoundError as exc:
                msg = f"module {module_name!r} has no attribute {name!r}"
                raise AttributeError(msg) from exc

            value = getattr(target_module, target_name)

            return module_namespace.setdefault(name, value)

        module_namespace.setdefault("__getattr__", __getattr__)

    if link_name in registry:
        msg = f"{link_name!r} is already registered"
        raise RuntimeError(msg)

    registry[link_name] = tuple(target.rpartition(".")[::2])
