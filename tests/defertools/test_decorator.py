#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: 0BSD

import asyncio
import sys

import pytest

import defertools

if sys.version_info < (3, 11):
    from exceptiongroup import ExceptionGroup


class TestDeferrable:
    def test_base(self, /, log):
        @defertools.deferrable
        def work(value):
            """Do some work."""

            defertools.defer(log.append, "opened")
            defertools.defer(log.append, "connected")

            log.append(value)

            return value * 2

        assert work.__name__ == "work"
        assert work.__doc__ == "Do some work."

        assert work(21) == 42
        assert log == [21, "connected", "opened"]

        assert defertools.current_scope(None) is None

    def test_scope_per_call(self, /):
        scopes = []

        @defertools.deferrable
        def work():
            scopes.append(defertools.current_scope())

        work()
        work()

        first, second = scopes

        assert first is not second
        assert first.closed
        assert second.closed
        assert first.name.endswith("work")

    def test_nested_calls(self, /, log):
        @defertools.deferrable
        def inner():
            defertools.defer(log.append, "inner")

        @defertools.deferrable
        def outer():
            defertools.defer(log.append, "outer")

            inner()

            log.append("after inner")

        outer()

        assert log == ["inner", "after inner", "outer"]

    def test_error(self, /, log):
        @defertools.deferrable
        def work():
            defertools.defer(log.append, "cleanup")

            raise ValueError

        with pytest.raises(ValueError):
            work()

        assert log == ["cleanup"]

    def test_failing_action(self, /, failing):
        failure = OSError("failure")

        @defertools.deferrable
        def work():
            defertools.defer(failing(failure))

        with pytest.raises(ExceptionGroup) as info:
            work()

        assert info.value.exceptions == (failure,)

    def test_method(self, /, log):
        class Resource:
            @defertools.deferrable
            def use(self, /):
                defertools.defer(log.append, self)

        resource = Resource()
        resource.use()

        assert log == [resource]

    def test_coroutine_function(self, /, log):
        @defertools.deferrable
        async def work():
            defertools.defer(log.append, "cleanup")

            await asyncio.sleep(0)

            log.append("work")

            return defertools.current_scope().name

        name = asyncio.run(work())

        assert name.endswith("work")
        assert log == ["work", "cleanup"]

    def test_generator_function(self, /, log):
        @defertools.deferrable
        def produce():
            defertools.defer(log.append, "cleanup")

            yield 1

            log.append("after yield")

            yield 2

        items = []

        with defertools.open_scope(name="caller") as caller:
            for item in produce():
                assert defertools.current_scope() is caller

                items.append(item)

            log.append("caller body end")

        assert items == [1, 2]
        assert log == ["after yield", "cleanup", "caller body end"]

    def test_generator_send_and_return(self, /, log):
        @defertools.deferrable
        def echo():
            defertools.defer(log.append, "cleanup")

            received = yield "ready"

            return received

        generator = echo()

        assert next(generator) == "ready"
        assert log == []

        with pytest.raises(StopIteration) as info:
            generator.send("value")

        assert info.value.value == "value"
        assert log == ["cleanup"]

    def test_generator_close(self, /, log):
        @defertools.deferrable
        def produce():
            defertools.defer(log.append, "cleanup")

            try:
                yield 1
            finally:
                log.append("finally")

        generator = produce()

        assert next(generator) == 1

        generator.close()

        assert log == ["finally", "cleanup"]
        assert defertools.current_scope(None) is None

    def test_generator_throw(self, /, log):
        @defertools.deferrable
        def produce():
            defertools.defer(log.append, "cleanup")

            try:
                yield 1
            except KeyError:
                log.append("handled")

            yield 2

        generator = produce()

        assert next(generator) == 1
        assert generator.throw(KeyError("key")) == 2
        assert log == ["handled"]

        with pytest.raises(ValueError):
            generator.throw(ValueError("value"))

        assert log == ["handled", "cleanup"]

    def test_async_generator_function(self, /, log):
        @defertools.deferrable
        async def produce():
            defertools.defer(log.append, "cleanup")

            yield 1

            await asyncio.sleep(0)

            log.append("after yield")

            yield 2

        async def main():
            items = []

            async for item in produce():
                assert defertools.current_scope(None) is None

                items.append(item)

            log.append("consumer end")

            return items

        assert asyncio.run(main()) == [1, 2]
        assert log == ["after yield", "cleanup", "consumer end"]

    def test_not_callable(self, /):
        with pytest.raises(TypeError):
            defertools.deferrable(42)
