from datetime import datetime

import pytest

V = pytest.importorskip("vdb_values", reason="vdb_values module not found")


def test_equality_is_kind_sensitive():
    assert V.Text("5") != V.Integer(5)
    assert V.Integer(5) == V.Integer(5)
    assert V.Text("a") == V.Text("a")
    # usable as dict keys (the by-value index depends on it)
    assert len({V.Text("a"), V.Text("a"), V.Integer(1)}) == 2


def test_entry_equality_needs_name_and_value():
    assert V.Entry.text("word", "coche") == V.Entry("word", V.Text("coche"))
    assert V.Entry.text("word", "coche") != V.Entry.text("name", "coche")
    assert V.Entry.text("n", "1") != V.Entry.integer("n", 1)


def test_starts_with_and_contains_on_text():
    s1, s2, s3 = V.Text("hello"), V.Text("hello world"), V.Text("o wor")
    assert V.starts_with(s2, s1)
    assert not V.starts_with(s1, s2)
    assert V.contains(s2, s3)
    assert not V.contains(s3, s2)


def test_partial_matching_is_false_for_non_text():
    assert V.starts_with(V.Integer(5), V.Integer(5)) is False
    assert V.contains(V.Integer(55), V.Integer(5)) is False
    assert V.starts_with(V.Text("5"), V.Integer(5)) is False
    ts = V.Timestamp(datetime(2013, 11, 22, 12, 0, 0))
    assert V.contains(ts, ts) is False


def test_display_forms():
    assert str(V.Timestamp(datetime(2013, 11, 22, 12, 5, 59))) == "2013-11-22 12:05"
    assert str(V.Integer(-42)) == "-42"
    assert str(V.Text("to enjoy")) == "to enjoy"
    assert str(V.Entry.text("value", "car")) == "value: car"


def test_timestamp_parse_precision_and_date():
    ts = V.Timestamp.parse("2013-11-22 12:00:00")
    assert ts == V.Timestamp(datetime(2013, 11, 22, 12, 0, 0))
    assert ts.date() == "2013-11-22"
    assert V.Text("x").date() is None
    # microseconds are dropped on construction
    assert V.Timestamp(datetime(2020, 1, 1, 0, 0, 0, 999)).data.microsecond == 0
    assert V.Timestamp.now().data.microsecond == 0
    with pytest.raises(ValueError):
        V.Timestamp.parse("22/11/2013")


def test_integer_range_and_type_checks():
    V.Integer(2**31 - 1)
    V.Integer(-2**31)
    with pytest.raises(ValueError):
        V.Integer(2**31)
    with pytest.raises(TypeError):
        V.Integer(True)
    with pytest.raises(TypeError):
        V.Text(3)
    with pytest.raises(TypeError):
        V.Entry("name", "plain string is not a Value")


def test_to_value_wraps_plain_scalars():
    assert V.to_value("a") == V.Text("a")
    assert V.to_value(7) == V.Integer(7)
    assert V.to_value(datetime(2001, 2, 3, 4, 5, 6)) == V.Timestamp.parse("2001-02-03 04:05:06")
    assert V.to_value(V.Integer(1)) == V.Integer(1)
    with pytest.raises(TypeError):
        V.to_value(1.5)


def test_json_codec_shapes_and_errors():
    e = V.Entry.timestamp("add_date", "2013-11-22 12:00:00")
    assert e.to_dict() == {"name": "add_date",
                           "value": {"type": "timestamp", "value": "2013-11-22 12:00:00"}}
    assert V.Entry.from_dict(e.to_dict()) == e
    assert V.value_to_json(V.Integer(3)) == {"type": "integer", "value": 3}

    for bad in ({"type": "float", "value": 1.0},
                {"type": "integer", "value": "3"},
                {"type": "text"},
                {"type": "timestamp", "value": 12},
                "text"):
        with pytest.raises(ValueError):
            V.value_from_json(bad)
    with pytest.raises(ValueError):
        V.Entry.from_dict({"value": {"type": "text", "value": "x"}})


def test_timestamp_rejects_timezone_aware_datetimes():
    from datetime import timedelta, timezone
    aware = datetime(2020, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=5)))
    with pytest.raises(ValueError):
        V.Timestamp(aware)
    with pytest.raises(ValueError):
        V.to_value(aware)
    assert V.Timestamp(datetime(2020, 1, 1, 12, 0)).data.tzinfo is None
