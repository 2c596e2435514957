"""Lazy top-level imports resolve to the real objects."""

import pytest

import wali
import wali.routing


class TestTopLevel:
    @pytest.mark.parametrize("name", wali.__all__)
    def test_every_export_resolves(self, name: str) -> None:
        assert getattr(wali, name) is not None

    def test_unknown_name(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            _ = wali.DoesNotExist

    def test_same_objects(self) -> None:
        from wali.context import g
        from wali.routing.router import Router

        assert wali.Router is Router
        assert wali.g is g


class TestRouting:
    @pytest.mark.parametrize("name", wali.routing.__all__)
    def test_every_export_resolves(self, name: str) -> None:
        assert getattr(wali.routing, name) is not None

    def test_unknown_name(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            _ = wali.routing.DoesNotExist
