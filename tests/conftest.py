#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: 0BSD

from collections import defaultdict
from functools import partial
from itertools import chain
from pathlib import Path

import pytest


@pytest.fixture
def log():
    return []


@pytest.fixture
def failing():
    def _failing(exc, /):
        def _raise():
            raise exc

        return _raise

    return _failing


@pytest.fixture
def unrepresentable():
    class _Unrepresentable:
        def __init__(self, exc, /):
            self.exc = exc

        def __repr__(self, /):
            msg = "no representation"
            raise RuntimeError(msg)

        def __call__(self, /):
            raise self.exc

    return _Unrepresentable


def pytest_collection_modifyitems(config, items):
    # run the building blocks first
    directory = Path(__file__).parent
    ordered_tests = defaultdict(
        partial(defaultdict, list),
        {
            "defertools.meta.test_markers": defaultdict(list),
            "defertools.meta.test_exports": defaultdict(list),
            "defertools.test_scope": defaultdict(list),
            "defertools.test_guard": defaultdict(list),
            "defertools.test_decorator": defaultdict(list),
        },
    )

    for item in items:
        module_name = ".".join(item.path.relative_to(directory).parts)[:-3]
        ordered_tests[module_name][item.obj].append(item)

    items[:] = chain.from_iterable(
        chain.from_iterable(mapping.values())
        for mapping in ordered_tests.values()
    )
