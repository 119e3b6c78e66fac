"""Tests for the engine loader — scoped override, propagation, file engines."""

from __future__ import annotations

import asyncio
import sys
import textwrap
import types
from pathlib import Path

import pytest
from pydantic import ValidationError

from commitloupe.core import assets
from commitloupe.core.assets import asset_base_path
from commitloupe.core.engine_loader import EngineLoader, EngineReference

BASE = "https://x.com/js/"


@pytest.fixture
def fake_engine(monkeypatch) -> types.ModuleType:
    """An importable in-memory engine module recording what it saw."""
    module = types.ModuleType("fake_loupe_engine")
    module.calls = []

    def create(config, document):
        module.calls.append((config, document, asset_base_path()))

    async def create_async(config, document):
        await asyncio.sleep(0)
        module.calls.append((config, document, asset_base_path()))

    def explode(config, document):
        raise LookupError("mount target not found")

    module.create = create
    module.create_async = create_async
    module.explode = explode
    monkeypatch.setitem(sys.modules, "fake_loupe_engine", module)
    return module


class TestEngineReference:
    def test_module_and_attribute(self):
        ref = EngineReference.parse("pkg.mod:make")
        assert (ref.module, ref.attribute, ref.is_file) == ("pkg.mod", "make", False)

    def test_default_attribute(self):
        assert EngineReference.parse("pkg.mod").attribute == "create"

    def test_file_reference(self):
        ref = EngineReference.parse("engines/loupe.py:create")
        assert ref.is_file
        assert str(ref) == "engines/loupe.py:create"

    @pytest.mark.parametrize("bad", [":create", "pkg.mod:", ""])
    def test_malformed_rejected(self, bad):
        with pytest.raises(ValidationError):
            EngineReference.parse(bad)

    def test_loader_rejects_malformed_entry(self, document):
        with pytest.raises(ValueError):
            EngineLoader(document, "pkg.mod:")


class TestEngineLoaderSuccess:
    def test_engine_receives_config_and_document(
        self, fake_engine, document, make_dashboard_config
    ):
        config = make_dashboard_config()
        loader = EngineLoader(document, "fake_loupe_engine:create")
        asyncio.run(loader.load(BASE, config))

        assert len(fake_engine.calls) == 1
        engine_config, engine_document, _ = fake_engine.calls[0]
        assert engine_config == config.to_engine_config()
        assert engine_document is document

    def test_override_held_while_engine_runs(
        self, fake_engine, document, make_dashboard_config
    ):
        loader = EngineLoader(document, "fake_loupe_engine:create")
        asyncio.run(loader.load(BASE, make_dashboard_config()))
        assert fake_engine.calls[0][2] == BASE
        assert asset_base_path() is None

    def test_async_entry_is_awaited_under_override(
        self, fake_engine, document, make_dashboard_config
    ):
        loader = EngineLoader(document, "fake_loupe_engine:create_async")
        asyncio.run(loader.load(BASE, make_dashboard_config()))
        assert fake_engine.calls[0][2] == BASE
        assert asset_base_path() is None

    def test_prior_override_restored(self, fake_engine, document, make_dashboard_config):
        assets._asset_base_path = "https://prior/"
        loader = EngineLoader(document, "fake_loupe_engine:create")
        asyncio.run(loader.load(BASE, make_dashboard_config()))
        assert fake_engine.calls[0][2] == BASE
        assert asset_base_path() == "https://prior/"

    def test_empty_series_accepted(self, fake_engine, document, make_dashboard_config):
        loader = EngineLoader(document, "fake_loupe_engine:create")
        asyncio.run(loader.load(BASE, make_dashboard_config(series_bindings=[])))
        assert fake_engine.calls[0][0]["series"] == []

    def test_override_outlives_the_import_call(
        self, fake_engine, document, make_dashboard_config, monkeypatch
    ):
        """The override is still set after the import has been started."""
        seen: list[str | None] = []
        loader = EngineLoader(document, "fake_loupe_engine:create")
        original = loader._import

        def slow_import(base_url):
            seen.append(asset_base_path())
            return original(base_url)

        monkeypatch.setattr(loader, "_import", slow_import)

        async def scenario():
            task = asyncio.create_task(loader.load(BASE, make_dashboard_config()))
            await asyncio.sleep(0)
            during = asset_base_path()
            await task
            return during

        during = asyncio.run(scenario())
        assert during == BASE
        assert seen == [BASE]
        assert fake_engine.calls[0][2] == BASE
        assert asset_base_path() is None


class TestEngineLoaderFailure:
    def test_missing_module_propagates_and_restores(self, document, make_dashboard_config):
        assets._asset_base_path = "https://prior/"
        loader = EngineLoader(document, "commitloupe_no_such_engine:create")
        with pytest.raises(ModuleNotFoundError):
            asyncio.run(loader.load(BASE, make_dashboard_config()))
        assert asset_base_path() == "https://prior/"

    def test_missing_attribute_propagates(self, fake_engine, document, make_dashboard_config):
        loader = EngineLoader(document, "fake_loupe_engine:nope")
        with pytest.raises(AttributeError):
            asyncio.run(loader.load(BASE, make_dashboard_config()))
        assert asset_base_path() is None

    def test_engine_error_propagates_unchanged(
        self, fake_engine, document, make_dashboard_config
    ):
        loader = EngineLoader(document, "fake_loupe_engine:explode")
        with pytest.raises(LookupError, match="mount target not found"):
            asyncio.run(loader.load(BASE, make_dashboard_config()))
        assert asset_base_path() is None

    def test_failed_load_leaves_mount_untouched(self, document, make_dashboard_config):
        mount = document.query_selector("#dashboard")
        loader = EngineLoader(document, "commitloupe_no_such_engine:create")
        with pytest.raises(ImportError):
            asyncio.run(loader.load(BASE, make_dashboard_config()))
        assert mount.children == []


class TestFileEngines:
    def _write_engine(self, directory: Path, name: str, body: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path

    def test_file_resolved_against_base(self, tmp_path, document, make_dashboard_config):
        self._write_engine(
            tmp_path / "site" / "js",
            "eager_engine.py",
            """
            from commitloupe.core.assets import asset_url

            # Resolved at import time, while the loader holds the override.
            WASM_URL = asset_url("engine.wasm")

            def create(config, document):
                mount = document.query_selector(config["mount"])
                node = document.create_element(
                    "div", classes=["loupe-root"], data_wasm=WASM_URL
                )
                mount.append_child(node)
            """,
        )
        base = (tmp_path / "site" / "js").as_uri() + "/"
        loader = EngineLoader(document, "eager_engine.py:create")
        asyncio.run(loader.load(base, make_dashboard_config()))

        root = document.query_selector(".loupe-root")
        assert root is not None
        assert root.get_attribute("data-wasm") == base + "engine.wasm"
        assert asset_base_path() is None

    def test_syntax_error_propagates_and_restores(
        self, tmp_path, document, make_dashboard_config
    ):
        self._write_engine(tmp_path, "broken_engine.py", "def create(:\n")
        loader = EngineLoader(document, "broken_engine.py:create")
        with pytest.raises(SyntaxError):
            asyncio.run(loader.load(tmp_path.as_uri() + "/", make_dashboard_config()))
        assert asset_base_path() is None
        assert "_commitloupe_engine_broken_engine" not in sys.modules

    def test_missing_file(self, tmp_path, document, make_dashboard_config):
        loader = EngineLoader(document, "absent_engine.py:create")
        with pytest.raises(ModuleNotFoundError):
            asyncio.run(loader.load(tmp_path.as_uri() + "/", make_dashboard_config()))

    def test_file_engine_over_http_rejected(self, document, make_dashboard_config):
        loader = EngineLoader(document, "engine.py:create")
        with pytest.raises(ImportError):
            asyncio.run(loader.load(BASE, make_dashboard_config()))
        assert asset_base_path() is None
