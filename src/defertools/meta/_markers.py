#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import enum
import sys

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Final, NoReturn

if sys.version_info >= (3, 11):  # `EnumMeta` has been renamed to `EnumType`
    from enum import EnumType
else:
    from enum import EnumMeta as EnumType

if TYPE_CHECKING:
    if sys.version_info >= (3, 11):
        from typing import Literal, Never
    else:
        from typing_extensions import Literal, Never

if sys.version_info >= (3, 11):
    from typing import final
else:
    from typing_extensions import final

# An enum is used so that type checkers treat the member as a singleton and
# can narrow `value is DEFAULT` checks.


class _SingletonMeta(EnumType):
    # to allow `type(DEFAULT)() is DEFAULT`
    def __call__(cls, /, *args, **kwargs):
        if len(cls) != 1 or args or kwargs:
            return super().__call__(*args, **kwargs)

        return super().__call__(next(iter(cls)).value)


@final
class DefaultType(enum.Enum, metaclass=_SingletonMeta):
    """
    A singleton class for :data:`DEFAULT`; mimics :data:`~types.NoneType`.

    Used as the default value of parameters for which :data:`None` is a valid
    argument.
    """

    DEFAULT = object()

    def __init_subclass__(cls, /, **kwargs: Never) -> NoReturn:
        bcs = __class__  # an implicit closure reference
        bcs_repr = f"{bcs.__module__}.{bcs.__qualname__}"

        msg = f"type '{bcs_repr}' is not an acceptable base type"
        raise TypeError(msg)

    def __setattr__(self, /, name: str, value: object) -> None:
        if name.startswith("_") and name.endswith("_"):  # used by `enum.Enum`
            super().__setattr__(name, value)
            return

        cls_qualname = self.__class__.__qualname__

        msg = f"{cls_qualname!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    def __reduce_ex__(self, /, protocol: int) -> str:
        return self._name_  # pickled by reference to the module attribute

    def __repr__(self, /) -> str:
        return f"{self.__class__.__module__}.{self._name_}"

    def __str__(self, /) -> str:
        return f"{self.__class__.__module__}.{self._name_}"

    def __bool__(self, /) -> Literal[False]:
        return False


DEFAULT: Final[Literal[DefaultType.DEFAULT]] = DefaultType.DEFAULT
