import json
import os

import pytest

S = pytest.importorskip("vdb_store", reason="vdb_store module not found")
V = pytest.importorskip("vdb_values", reason="vdb_values module not found")
PS = pytest.importorskip("vdb_persist", reason="vdb_persist module not found")
D = pytest.importorskip("vdb_demo_stores", reason="vdb_demo_stores module not found")


def test_save_load_roundtrip_preserves_rows_order_and_indexes(store_dir):
    db, ids = D.build_vocab_store("testdb")
    db.add_entry(ids["coche"], V.Entry.text("value", "automobile"))

    ts = PS.save(db, store_dir)
    db2 = PS.load("testdb", store_dir)

    assert db2.name == "testdb"
    assert db2.find_all_row_ids() == db.find_all_row_ids()
    for rid in db.find_all_row_ids():
        assert db2.row_entries(rid) == db.row_entries(rid)
    assert db2._by_name == db._by_name
    assert db2._by_value == db._by_value
    assert db2.row_max == db.row_max

    blob = json.loads(open(PS.store_path("testdb", store_dir), encoding="utf-8").read())
    assert blob["saved_at"] == ts
    assert blob["app_version"].startswith("vdb_persist/")
    assert set(blob["rows"]) == {"1", "2"}
    # indexes are never written
    assert "by_name" not in json.dumps(blob) and "_by_value" not in json.dumps(blob)


def test_file_schema_uses_discriminated_values(store_dir):
    db, ids = D.build_vocab_store("schema")
    PS.save(db, store_dir)
    blob = json.loads(open(PS.store_path("schema", store_dir), encoding="utf-8").read())
    row = blob["rows"][str(ids["coche"])]
    assert row[0] == {"name": "set", "value": {"type": "text", "value": "es-en"}}
    assert {"name": "add_counter", "value": {"type": "integer", "value": 2}} in row
    assert {"name": "add_date", "value": {"type": "timestamp", "value": "2013-11-22 12:00:00"}} in row


def test_save_creates_directory_and_replaces_tmp(store_dir):
    db, _ids = D.build_vocab_store("mk")
    assert not os.path.isdir(store_dir)
    PS.save(db, store_dir)
    path = PS.store_path("mk", store_dir)
    assert os.path.exists(path)
    assert not os.path.exists(path + ".tmp")


def test_row_max_survives_reload_so_ids_are_not_reused(store_dir):
    db = S.RecordStore("ids")
    a = db.add_row([V.Entry.text("w", "a")])
    b = db.add_row([V.Entry.text("w", "b")])
    db.remove_by_row_id(b)
    PS.save(db, store_dir)

    db2 = PS.load("ids", store_dir)
    assert db2.find_all_row_ids() == [a]
    assert db2.row_max == b
    assert db2.add_row([V.Entry.text("w", "c")]) == b + 1


def test_from_dict_rederives_row_max_when_missing_or_low():
    doc = {"rows": {"4": [{"name": "w", "value": {"type": "text", "value": "x"}}]}, "row_max": 1}
    db = S.RecordStore.from_dict(doc, name="legacy")
    assert db.row_max == 4
    assert db.add_row([V.Entry.text("w", "y")]) == 5
    db.check_invariants()


def test_empty_rows_are_pruned_before_save(store_dir):
    db, _ids = D.build_vocab_store("prune")
    db._rows[9] = []
    db._row_max = 9
    PS.save(db, store_dir)
    blob = json.loads(open(PS.store_path("prune", store_dir), encoding="utf-8").read())
    assert "9" not in blob["rows"]
    assert 9 not in db


def test_load_missing_file_raises_not_found(store_dir):
    with pytest.raises(PS.StoreNotFound):
        PS.load("nothing-here", store_dir)
    # also catchable as the builtin
    with pytest.raises(FileNotFoundError):
        PS.load("nothing-here", store_dir)


@pytest.mark.parametrize("content", [
    "{not json",
    "[1, 2, 3]",
    '{"rows": []}',
    '{"rows": {"x": []}}',
    '{"rows": {"1": [{"name": "w", "value": {"type": "float", "value": 1.5}}]}}',
    '{"rows": {"1": "w"}}',
    '{"rows": {}, "row_max": -1}',
])
def test_load_malformed_content_raises_format_error(store_dir, content):
    os.makedirs(store_dir, exist_ok=True)
    with open(PS.store_path("bad", store_dir), "w", encoding="utf-8") as f:
        f.write(content)
    with pytest.raises(PS.StoreFormatError):
        PS.load("bad", store_dir)


def test_save_into_unwritable_location_raises_io_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    db, _ids = D.build_vocab_store("x")
    with pytest.raises(PS.StoreIOError):
        PS.save(db, str(blocker / "sub"))


def test_store_dir_env_var_and_default(tmp_path, monkeypatch):
    monkeypatch.delenv("VDB_STORE_DIR", raising=False)
    assert PS.resolve_store_dir() == "save"
    assert PS.store_path("notes") == os.path.join("save", "notes.json")

    monkeypatch.setenv("VDB_STORE_DIR", str(tmp_path))
    assert PS.store_path("notes") == os.path.join(str(tmp_path), "notes.json")
    # explicit argument wins
    assert PS.resolve_store_dir("elsewhere") == "elsewhere"

    db, _ids = D.build_vocab_store("env")
    PS.save(db)
    assert (tmp_path / "env.json").exists()
    assert PS.load("env").find_all_row_ids() == [1, 2]


def test_store_names_cannot_escape_the_directory():
    with pytest.raises(ValueError):
        PS.store_path("../etc")
    with pytest.raises(ValueError):
        PS.store_path("")


def test_new_is_empty_and_unsaved(store_dir):
    db = PS.new("fresh")
    assert isinstance(db, S.RecordStore)
    assert db.find_all_row_ids() == [] and db.row_max == 0
    assert not os.path.exists(PS.store_path("fresh", store_dir))


def test_save_of_unencodable_text_raises_io_error_and_leaves_no_tmp(store_dir):
    db = PS.new("surrogate")
    db.add_row([V.Entry.text("w", "bad\ud800")])
    with pytest.raises(PS.StoreIOError):
        PS.save(db, store_dir)
    path = PS.store_path("surrogate", store_dir)
    assert not os.path.exists(path + ".tmp")
    assert not os.path.exists(path)


def test_load_deeply_nested_json_raises_format_error(store_dir):
    os.makedirs(store_dir, exist_ok=True)
    with open(PS.store_path("deep", store_dir), "w", encoding="utf-8") as f:
        f.write("[" * 100000 + "]" * 100000)
    with pytest.raises(PS.StoreFormatError):
        PS.load("deep", store_dir)


@pytest.mark.parametrize("name", ["a/b", "..", ".", "x\\y"])
def test_store_rejects_names_that_cannot_be_saved(name):
    with pytest.raises(ValueError):
        S.RecordStore(name)
    with pytest.raises(ValueError):
        PS.new(name)
