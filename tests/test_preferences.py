"""Tests for the display preference store and its collaborators."""

import json
import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from talentflow.errors import PersistenceError
from talentflow.preferences import (
    ClassListTarget,
    ConsoleThemeTarget,
    JsonFileStorage,
    MemoryStorage,
    PreferenceStore,
    Theme,
    environment_prefers_dark,
    never_dark,
)
from talentflow.preferences.display import DARK_STYLES, LIGHT_STYLES

KEY = "talentflow-theme"


def make_store(storage=None, ambient=never_dark, target=None, default="light"):
    return PreferenceStore(
        storage if storage is not None else MemoryStorage(),
        ambient=ambient,
        target=target,
        storage_key=KEY,
        default=default,
    )


class FailingStorage(MemoryStorage):
    """Storage whose reads work but whose writes always fail."""

    def set(self, key, value):
        raise PersistenceError("storage disabled")


class TestTheme:
    """Test the Theme enum."""

    def test_complement(self):
        assert Theme.LIGHT.complement() is Theme.DARK
        assert Theme.DARK.complement() is Theme.LIGHT

    def test_coerce(self):
        assert Theme.coerce("dark") is Theme.DARK
        assert Theme.coerce(Theme.LIGHT) is Theme.LIGHT
        with pytest.raises(ValueError):
            Theme.coerce("sepia")
        with pytest.raises(ValueError):
            Theme.coerce(1)

    def test_from_stored(self):
        assert Theme.from_stored("dark") is Theme.DARK
        assert Theme.from_stored(" Light ") is Theme.LIGHT
        assert Theme.from_stored("purple") is None
        assert Theme.from_stored(None) is None


class TestInitialize:
    """Test PreferenceStore.initialize."""

    def test_stored_value_wins_over_ambient(self):
        """Test a persisted "dark" is adopted regardless of ambient."""
        store = make_store(MemoryStorage({KEY: "dark"}), ambient=lambda: False)
        assert store.initialize() is Theme.DARK

        store = make_store(MemoryStorage({KEY: "light"}), ambient=lambda: True)
        assert store.initialize() is Theme.LIGHT

    def test_ambient_dark_without_stored_value(self):
        store = make_store(ambient=lambda: True)
        assert store.initialize() is Theme.DARK

    def test_default_light(self):
        store = make_store()
        assert store.initialize() is Theme.LIGHT

    def test_configured_default(self):
        store = make_store(default="dark")
        assert store.initialize() is Theme.DARK

    def test_invalid_stored_value_is_ignored(self, caplog):
        """Test an invalid entry falls back to the ambient signal."""
        store = make_store(MemoryStorage({KEY: "solarized"}), ambient=lambda: True)
        with caplog.at_level(logging.DEBUG, logger="talentflow"):
            assert store.initialize() is Theme.DARK
        assert "solarized" in caplog.text

    def test_ambient_read_once(self):
        ambient = MagicMock(return_value=False)
        make_store(ambient=ambient).initialize()
        ambient.assert_called_once()

    def test_ambient_failure_counts_as_light(self, caplog):
        ambient = MagicMock(side_effect=OSError("no display"))

        with caplog.at_level(logging.DEBUG, logger="talentflow"):
            assert make_store(ambient=ambient).initialize() is Theme.LIGHT

        assert "read_ambient_signal" in caplog.text
        assert "no display" in caplog.text

    def test_unreadable_storage_counts_as_absent(self):
        storage = MagicMock()
        storage.get.side_effect = OSError("storage disabled")
        assert make_store(storage, ambient=lambda: True).initialize() is Theme.DARK

    def test_applies_side_effect(self):
        target = ClassListTarget()
        make_store(MemoryStorage({KEY: "dark"}), target=target).initialize()
        assert target.is_dark

    def test_idempotent(self):
        """Test two initializations without a set agree."""
        store = make_store(MemoryStorage({KEY: "dark"}))
        assert store.initialize() is store.initialize()
        assert store.initialized is True

    def test_does_not_persist_ambient_choice(self):
        storage = MemoryStorage()
        make_store(storage, ambient=lambda: True).initialize()
        assert storage.get(KEY) is None


class TestSetAndToggle:
    """Test PreferenceStore.set and toggle."""

    def test_set_persists_and_applies(self):
        storage = MemoryStorage()
        target = ClassListTarget({"font-sans"})
        store = make_store(storage, target=target)
        store.initialize()

        assert store.set(Theme.DARK) is Theme.DARK

        assert store.value is Theme.DARK
        assert storage.get(KEY) == "dark"
        assert target.classes == {"font-sans", "dark"}

    def test_set_accepts_string(self):
        store = make_store()
        store.set("dark")
        assert store.value is Theme.DARK

    def test_set_rejects_unknown_value(self):
        store = make_store()
        with pytest.raises(ValueError):
            store.set("blue")
        assert store.value is Theme.LIGHT

    def test_toggle_is_involutive(self):
        """Test toggling twice restores the value for both themes."""
        for start in Theme:
            store = make_store(MemoryStorage({KEY: start.value}))
            store.initialize()
            store.toggle()
            assert store.value is start.complement()
            store.toggle()
            assert store.value is start

    def test_set_survives_failing_storage(self, caplog):
        """Test a failed write keeps the in-memory value and side effect."""
        target = ClassListTarget()
        store = make_store(FailingStorage(), target=target)
        store.initialize()

        with caplog.at_level(logging.WARNING, logger="talentflow"):
            store.set(Theme.DARK)

        assert store.value is Theme.DARK
        assert target.is_dark
        assert "storage disabled" in caplog.text

    def test_failing_display_leaves_storage_untouched(self):
        """Test nothing is persisted when the side effect cannot be applied."""
        storage = MemoryStorage({KEY: "light"})
        store = make_store(storage)
        store.initialize()
        store.target = MagicMock()
        store.target.apply.side_effect = RuntimeError("no document")

        with pytest.raises(RuntimeError):
            store.set(Theme.DARK)

        assert store.value is Theme.LIGHT
        assert storage.get(KEY) == "light"

    def test_reload_reconciles_from_storage(self):
        """Test a second store instance reads what the first persisted."""
        storage = MemoryStorage()
        first = make_store(storage)
        first.initialize()
        first.toggle()

        second = make_store(storage)
        assert second.initialize() is Theme.DARK

    def test_failed_write_reverts_on_reload(self):
        storage = FailingStorage()
        first = make_store(storage)
        first.set(Theme.DARK)

        assert make_store(storage).initialize() is Theme.LIGHT

    def test_side_effect_before_return(self):
        """Test listeners observe value and display already in agreement."""
        target = ClassListTarget()
        storage = MemoryStorage()
        store = make_store(storage, target=target)
        observed = []
        store.add_listener(
            lambda old, new: observed.append((new, target.is_dark, storage.get(KEY)))
        )

        store.set(Theme.DARK)

        assert observed == [(Theme.DARK, True, "dark")]


class TestJsonFileStorage:
    """Test JsonFileStorage."""

    def test_round_trip_and_other_keys_kept(self, temp_dir):
        path = Path(temp_dir) / "nested" / "prefs.json"
        storage = JsonFileStorage(str(path))

        assert storage.get(KEY) is None
        storage.set("other", "value")
        storage.set(KEY, "dark")

        assert storage.get(KEY) == "dark"
        assert json.loads(path.read_text()) == {"other": "value", KEY: "dark"}

    def test_corrupt_file_reads_as_empty(self, temp_dir):
        path = Path(temp_dir) / "prefs.json"
        path.write_text("{not json")
        storage = JsonFileStorage(str(path))

        assert storage.get(KEY) is None
        storage.set(KEY, "light")
        assert storage.get(KEY) == "light"

    def test_non_string_value_ignored(self, temp_dir):
        path = Path(temp_dir) / "prefs.json"
        path.write_text(json.dumps({KEY: 1}))
        assert JsonFileStorage(str(path)).get(KEY) is None

    def test_write_failure_raises_persistence_error(self, temp_dir):
        blocker = Path(temp_dir) / "file"
        blocker.write_text("")
        storage = JsonFileStorage(str(blocker / "prefs.json"))

        with pytest.raises(PersistenceError):
            storage.set(KEY, "dark")

    def test_default_path_from_config(self, isolated_config, temp_dir):
        storage = JsonFileStorage()
        assert storage.path == Path(temp_dir) / ".config" / "talentflow" / "preferences.json"


class TestEnvironmentPrefersDark:
    """Test the ambient signal."""

    def test_explicit_override(self):
        assert environment_prefers_dark({"TALENTFLOW_PREFERS_DARK": "1"}) is True
        assert environment_prefers_dark({"TALENTFLOW_PREFERS_DARK": "off", "COLORFGBG": "15;0"}) is False

    def test_colorfgbg(self):
        assert environment_prefers_dark({"COLORFGBG": "15;0"}) is True
        assert environment_prefers_dark({"COLORFGBG": "0;default;15"}) is False
        assert environment_prefers_dark({"COLORFGBG": "15;default"}) is False

    def test_no_signal(self):
        assert environment_prefers_dark({}) is False
        assert environment_prefers_dark({"TALENTFLOW_PREFERS_DARK": "maybe"}) is False

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.delenv("COLORFGBG", raising=False)
        monkeypatch.setenv("TALENTFLOW_PREFERS_DARK", "yes")
        assert environment_prefers_dark() is True


class TestDisplayTargets:
    """Test display side effects."""

    def test_class_list_toggle(self):
        target = ClassListTarget()
        target.apply(True)
        target.apply(True)
        assert target.classes == {"dark"}
        target.apply(False)
        assert target.classes == set()

    def test_console_theme_swaps(self):
        console = MagicMock(spec=Console)
        target = ConsoleThemeTarget(console)

        target.apply(True)
        target.apply(False)

        assert console.push_theme.call_args_list[0][0][0] is DARK_STYLES
        assert console.push_theme.call_args_list[1][0][0] is LIGHT_STYLES
        console.pop_theme.assert_called_once()
        assert target.dark is False

    def test_console_theme_styles_resolve(self):
        console = Console(record=True, width=40)
        store = make_store(MemoryStorage({KEY: "dark"}), target=ConsoleThemeTarget(console))
        store.initialize()
        assert console.get_style("accent").color.name == "bright_cyan"


def test_store_reads_config_defaults(isolated_config):
    """Test omitted key and default come from configuration."""
    store = PreferenceStore(MemoryStorage(), ambient=never_dark)
    assert store.storage_key == "talentflow-theme"
    assert store.default is Theme.LIGHT
