"""Tests for the junction CLI — app resolution and the introspection commands."""

import sys
import types

import pytest

from junction import App
from junction.cli import main
from junction.cli._resolve import resolve_app
from junction.cli._routes import format_table
from junction.errors import ConfigurationError, UnresolvableApp


def _build_app() -> App:
    app = App()
    app.get("users/{id:int}", lambda id: id).name("users.show").private()
    app.post("users", lambda: None).rate_limit(5, 60)
    app.admin("reports", "Reports", lambda: "page")
    app.ajax("save_draft", lambda: "ok")
    return app


@pytest.fixture
def fake_module(monkeypatch: pytest.MonkeyPatch) -> types.ModuleType:
    module = types.ModuleType("_fake_junction_app")
    module.app = _build_app()
    module.create_app = _build_app
    module.empty = App()
    module.not_an_app = {"routes": []}
    module.site = types.SimpleNamespace(app=module.app)

    def broken_factory() -> App:
        raise RuntimeError("database unavailable")

    module.broken_factory = broken_factory
    monkeypatch.setitem(sys.modules, "_fake_junction_app", module)
    return module


class TestResolveApp:
    def test_default_attribute(self, fake_module: types.ModuleType) -> None:
        assert resolve_app("_fake_junction_app") is fake_module.app

    def test_explicit_attribute(self, fake_module: types.ModuleType) -> None:
        assert resolve_app("_fake_junction_app:empty") is fake_module.empty

    def test_factory(self, fake_module: types.ModuleType) -> None:
        app = resolve_app("_fake_junction_app:create_app")
        assert isinstance(app, App)
        assert app is not fake_module.app

    def test_dotted_attribute(self, fake_module: types.ModuleType) -> None:
        assert resolve_app("_fake_junction_app:site.app") is fake_module.app

    def test_not_an_app(self, fake_module: types.ModuleType) -> None:
        with pytest.raises(UnresolvableApp, match="got dict, not a junction.App"):
            resolve_app("_fake_junction_app:not_an_app")

    def test_factory_error(self, fake_module: types.ModuleType) -> None:
        with pytest.raises(UnresolvableApp, match="factory raised RuntimeError: database unavailable"):
            resolve_app("_fake_junction_app:broken_factory")

    def test_missing_attribute(self, fake_module: types.ModuleType) -> None:
        with pytest.raises(UnresolvableApp, match="no attribute 'nope'") as exc_info:
            resolve_app("_fake_junction_app:nope")
        assert exc_info.value.import_string == "_fake_junction_app:nope"
        assert isinstance(exc_info.value, ConfigurationError)

    def test_missing_module(self) -> None:
        with pytest.raises(UnresolvableApp, match="_no_such_module_here"):
            resolve_app("_no_such_module_here:app")


class TestFormatTable:
    def test_columns_aligned(self) -> None:
        lines = format_table(("A", "BB"), [("xyz", "1")])
        assert lines[0] == "A    BB"
        assert lines[1] == "-------"
        assert lines[2] == "xyz  1"


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "junction" in capsys.readouterr().out

    def test_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0
        assert "routes" in capsys.readouterr().out

    def test_routes(self, fake_module: types.ModuleType, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_junction_app:app"])
        out = capsys.readouterr().out
        lines = out.splitlines()
        assert lines[0].split() == ["TYPE", "METHOD", "PATH", "NAME", "MIDDLEWARE", "HANDLER"]
        assert "/users/{id:int}" in out
        assert "users.show" in out
        assert "rate_limit:5,60" in out
        assert "/admin?page=reports" in out
        assert "/ajax?action=save_draft" in out
        assert "capability:manage_options" in out

    def test_routes_filtered_by_type(self, fake_module: types.ModuleType, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_junction_app:app", "--type", "admin"])
        out = capsys.readouterr().out
        assert "/admin?page=reports" in out
        assert "/users" not in out
        assert "save_draft" not in out

    def test_routes_empty(self, fake_module: types.ModuleType, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "_fake_junction_app:empty"])
        assert capsys.readouterr().out.strip() == "No routes registered."

    def test_routes_bad_import(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "_no_such_module_here:app"])
        assert exc_info.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_routes_misconfigured(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        module = types.ModuleType("_fake_broken_app")
        module.app = App()
        module.app.get("x", lambda: None).middleware("no_such_middleware")
        monkeypatch.setitem(sys.modules, "_fake_broken_app", module)
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "_fake_broken_app"])
        assert exc_info.value.code == 1
        assert "no_such_middleware" in capsys.readouterr().err

    def test_middleware(self, fake_module: types.ModuleType, capsys: pytest.CaptureFixture[str]) -> None:
        fake_module.app.middleware_registry.register("audit", lambda: (lambda context: None))
        main(["middleware", "_fake_junction_app:app"])
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["NAME", "BUILTIN"]
        assert ["auth", "yes"] in [line.split() for line in lines]
        assert ["audit", "no"] in [line.split() for line in lines]
