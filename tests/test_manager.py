import shutil

import pytest

from conftest import make_mod
from tpfmm.exceptions import ErrorKind, ModNotFoundError, PersistenceError, ScanError
from tpfmm.manager import ModManager
from tpfmm.models import Settings
from tpfmm.services import SettingsStore
from tpfmm.services import registry as registry_module


@pytest.fixture
def two_mods(mods_dir):
    make_mod(mods_dir, "AwesomeTrains")
    make_mod(mods_dir, "BetterSignals")
    return mods_dir


def test_first_run_scenario(manager, two_mods):
    assert manager.get_mods_path() == ""

    result = manager.set_mods_path(str(two_mods))

    assert result.success
    assert [(e.id, e.enabled, e.load_order) for e in result.data] == [
        ("AwesomeTrains", False, 0),
        ("BetterSignals", False, 1),
    ]
    assert manager.get_mods_path() == str(two_mods)
    assert [e.id for e in manager.current()] == ["AwesomeTrains", "BetterSignals"]


def test_path_is_persisted_across_instances(manager, two_mods, settings_store):
    manager.set_mods_path(str(two_mods))

    reopened = ModManager(settings_store=SettingsStore(settings_store.config_dir))

    assert reopened.get_mods_path() == str(two_mods)
    assert reopened.current() == []
    assert [e.id for e in reopened.refresh().data] == ["AwesomeTrains", "BetterSignals"]


def test_nonexistent_path_leaves_settings_unchanged(manager, two_mods, tmp_path):
    manager.set_mods_path(str(two_mods))
    catalog = manager.current()

    result = manager.set_mods_path(str(tmp_path / "nope" / "mods"))

    assert not result.success
    assert result.kind is ErrorKind.NOT_FOUND
    assert manager.get_mods_path() == str(two_mods)
    assert manager.current() == catalog


def test_nonexistent_path_on_first_run(manager, tmp_path):
    result = manager.set_mods_path(str(tmp_path / "nope" / "mods"))

    assert result.kind is ErrorKind.NOT_FOUND
    assert manager.get_mods_path() == ""
    assert not manager.settings_store.settings_path.exists()


def test_wrong_folder_name_is_rejected_by_default(manager, tmp_path):
    folder = tmp_path / "MyMods"
    folder.mkdir()
    make_mod(folder, "SomeMod")

    result = manager.set_mods_path(str(folder))

    assert result.kind is ErrorKind.LOOKS_WRONG
    assert manager.get_mods_path() == ""
    assert manager.current() == []


def test_wrong_folder_name_accepted_with_force(manager, tmp_path):
    folder = tmp_path / "MyMods"
    folder.mkdir()
    make_mod(folder, "SomeMod")

    result = manager.set_mods_path(str(folder), force=True)

    assert result.success
    assert result.warnings
    assert manager.get_mods_path() == str(folder)
    assert [e.id for e in result.data] == ["SomeMod"]


def test_persistence_failure_changes_nothing(manager, two_mods, monkeypatch):
    def failing_save(settings):
        raise PersistenceError("read-only config dir")

    monkeypatch.setattr(manager.settings_store, "save", failing_save)

    result = manager.set_mods_path(str(two_mods))

    assert result.kind is ErrorKind.PERSISTENCE_ERROR
    assert manager.get_mods_path() == ""
    assert manager.current() == []


def test_scan_failure_during_setup_does_not_persist(manager, two_mods, monkeypatch):
    def failing_discover(path):
        raise ScanError("listing failed", kind=ErrorKind.NOT_ACCESSIBLE)

    monkeypatch.setattr(manager.registry, "discover", failing_discover)

    result = manager.set_mods_path(str(two_mods))

    assert result.kind is ErrorKind.NOT_ACCESSIBLE
    assert manager.get_mods_path() == ""
    assert not manager.settings_store.settings_path.exists()


def test_refresh_without_path(manager):
    result = manager.refresh()

    assert result.kind is ErrorKind.NO_PATH_CONFIGURED


def test_stale_path_scenario(settings_store, tmp_path):
    stale = tmp_path / "deleted" / "mods"
    stale.mkdir(parents=True)
    settings_store.save(Settings(mods_path=str(stale)))
    shutil.rmtree(stale)

    manager = ModManager(settings_store=settings_store)
    result = manager.refresh()

    assert not result.success
    assert result.kind in (ErrorKind.NOT_FOUND, ErrorKind.NOT_ACCESSIBLE)
    assert manager.get_mods_path() == str(stale)
    assert settings_store.load().mods_path == str(stale)


def test_enable_then_refresh(manager, two_mods):
    manager.set_mods_path(str(two_mods))

    assert manager.enable("BetterSignals").success
    refreshed = {e.id: e.enabled for e in manager.refresh().data}
    assert refreshed == {"AwesomeTrains": False, "BetterSignals": True}

    assert manager.disable("BetterSignals").success
    refreshed = {e.id: e.enabled for e in manager.refresh().data}
    assert refreshed == {"AwesomeTrains": False, "BetterSignals": False}


def test_enable_is_idempotent(manager, two_mods):
    manager.set_mods_path(str(two_mods))
    manager.enable("AwesomeTrains")
    before = manager.current()

    result = manager.enable("AwesomeTrains")

    assert result.success
    assert manager.current() == before
    assert [e.id for e in manager.enabled_mods()] == ["AwesomeTrains"]


def test_enable_unknown_id_passes_not_found_through(manager, two_mods):
    manager.set_mods_path(str(two_mods))

    result = manager.enable("Nope")

    assert result.kind is ErrorKind.NOT_FOUND
    with pytest.raises(ModNotFoundError):
        result.unwrap()


def test_enable_write_failure(manager, two_mods, monkeypatch):
    manager.set_mods_path(str(two_mods))

    def failing_write(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(registry_module, "write_id_list", failing_write)

    result = manager.enable("AwesomeTrains")

    assert result.kind is ErrorKind.MUTATION_ERROR
    assert not manager.current()[0].enabled
    assert not (two_mods / registry_module.ENABLED_FILENAME).exists()


def test_reorder_missing_id(manager, two_mods):
    manager.set_mods_path(str(two_mods))
    before = manager.current()

    result = manager.reorder(["BetterSignals"])

    assert result.kind is ErrorKind.INVALID_PERMUTATION
    assert manager.current() == before


def test_reorder(manager, two_mods):
    manager.set_mods_path(str(two_mods))

    assert manager.reorder(["BetterSignals", "AwesomeTrains"]).success
    assert [(e.id, e.load_order) for e in manager.mods] == [
        ("BetterSignals", 0),
        ("AwesomeTrains", 1),
    ]
    assert [e.id for e in manager.refresh().data] == ["BetterSignals", "AwesomeTrains"]


def test_settings_property_is_a_copy(manager, two_mods):
    manager.set_mods_path(str(two_mods))

    manager.settings.mods_path = "/elsewhere"

    assert manager.get_mods_path() == str(two_mods)


def test_bad_metadata_value_does_not_break_setup(manager, mods_dir):
    make_mod(mods_dir, "Good")
    make_mod(
        mods_dir,
        "Huge",
        source="function data() return { info = { name = 'Huge', minorVersion = math.huge } } end",
    )
    make_mod(mods_dir, "Cafe", source=r'function data() return { info = { name = "Caf\233" } } end')

    result = manager.set_mods_path(str(mods_dir))

    assert result.success
    assert [e.id for e in result.data] == ["Cafe", "Good", "Huge"]
    assert {e.id: e.display_name for e in manager.refresh().data}["Cafe"] == "Cafe"


def test_hashed_folder_is_not_offered(manager, mods_dir):
    make_mod(mods_dir, "#Hashed")
    make_mod(mods_dir, "Plain")
    manager.set_mods_path(str(mods_dir))

    assert manager.enable("#Hashed").kind is ErrorKind.NOT_FOUND
    assert manager.enable("Plain").success
    refreshed = {e.id: e.enabled for e in manager.refresh().data}
    assert refreshed == {"Plain": True}
