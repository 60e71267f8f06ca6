#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

"""
Small metaprogramming helpers used by the library itself: the
:data:`DEFAULT` marker for parameters that were not passed, and the
:func:`export` function that presents the public namespace.
"""

from ._exports import (
    export as export,
    export_dynamic as export_dynamic,
)
from ._markers import (
    DEFAULT as DEFAULT,
    DefaultType as DefaultType,
)
