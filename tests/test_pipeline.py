"""Tests for wali.middleware.pipeline: before/after hook execution."""

import functools

import pytest

from wali.errors import HandlerResolutionError
from wali.middleware.pipeline import MiddlewarePipeline
from wali.middleware.protocol import BaseMiddleware, Middleware
from wali.routing.registry import Registry


class _Recorder:
    def __init__(self, log: list[str], name: str, proceed: bool = True) -> None:
        self.log = log
        self.name = name
        self.proceed = proceed

    def before(self, params: tuple[str, ...]) -> bool:
        self.log.append(f"{self.name}.before{params}")
        return self.proceed

    def after(self) -> None:
        self.log.append(f"{self.name}.after")


def _recorder(log: list[str], name: str, proceed: bool = True) -> functools.partial[_Recorder]:
    return functools.partial(_Recorder, log, name, proceed)


class TestRunBefore:
    def test_runs_in_order(self) -> None:
        log: list[str] = []
        pipeline = MiddlewarePipeline()
        assert pipeline.run_before([_recorder(log, "a"), _recorder(log, "b")], ("1",))
        assert log == ["a.before('1',)", "b.before('1',)"]

    def test_veto_stops_the_rest(self) -> None:
        log: list[str] = []
        pipeline = MiddlewarePipeline()
        refs = [_recorder(log, "a"), _recorder(log, "b", proceed=False), _recorder(log, "c")]
        assert pipeline.run_before(refs, ()) is False
        assert log == ["a.before()", "b.before()"]

    def test_empty_proceeds(self) -> None:
        assert MiddlewarePipeline().run_before([], ()) is True

    def test_fresh_instance_per_call(self) -> None:
        instances: list[object] = []

        class Tracking(BaseMiddleware):
            def before(self, params: tuple[str, ...]) -> bool:
                instances.append(self)
                return True

        pipeline = MiddlewarePipeline()
        pipeline.run_before([Tracking], ())
        pipeline.run_before([Tracking], ())
        assert len(instances) == 2
        assert instances[0] is not instances[1]


class TestRunAfter:
    def test_runs_in_order(self) -> None:
        log: list[str] = []
        MiddlewarePipeline().run_after([_recorder(log, "x"), _recorder(log, "y")])
        assert log == ["x.after", "y.after"]

    def test_raising_hook_stops_the_rest(self) -> None:
        log: list[str] = []

        class Boom(BaseMiddleware):
            def after(self) -> None:
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            MiddlewarePipeline().run_after([Boom, _recorder(log, "y")])
        assert log == []


class TestInstantiate:
    def test_by_registered_name(self) -> None:
        registry: Registry[Middleware] = Registry("middleware")
        registry.register("noop", BaseMiddleware)
        instance = MiddlewarePipeline(registry).instantiate("noop")
        assert isinstance(instance, BaseMiddleware)
        assert isinstance(instance, Middleware)

    def test_unknown_name(self) -> None:
        with pytest.raises(HandlerResolutionError, match="Middleware 'auth' is not registered"):
            MiddlewarePipeline().instantiate("auth")

    def test_missing_hooks(self) -> None:
        class Incomplete:
            def before(self, params: tuple[str, ...]) -> bool:
                return True

        with pytest.raises(HandlerResolutionError, match=r"must define before\(params\)"):
            MiddlewarePipeline().instantiate(Incomplete)


class TestBaseMiddleware:
    def test_defaults(self) -> None:
        middleware = BaseMiddleware()
        assert middleware.before(("1",)) is True
        assert middleware.after() is None
