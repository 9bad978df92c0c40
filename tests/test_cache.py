"""Unit tests for the JSON file cache."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from models.schemas import CachedReading, CachedSensorId
from storage.cache import JsonFileCache, reading_filename

UPDATED_AT = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_directory_is_created_on_first_write(tmp_path: Path) -> None:
    root = tmp_path / "cache" / "nested"
    cache = JsonFileCache(root_path=root)

    assert cache.load_sensor_id() is None
    assert not root.exists()

    cache.save_sensor_id(CachedSensorId(sensor_id="69223", updated_at=UPDATED_AT))

    assert (root / "sensor.json").exists()


def test_sensor_id_round_trip(tmp_path: Path) -> None:
    cache = JsonFileCache(root_path=tmp_path)
    cache.save_sensor_id(CachedSensorId(sensor_id="69223", updated_at=UPDATED_AT))

    loaded = JsonFileCache(root_path=tmp_path).load_sensor_id()

    assert loaded == CachedSensorId(sensor_id="69223", updated_at=UPDATED_AT)


def test_reading_is_stored_per_sensor(tmp_path: Path) -> None:
    cache = JsonFileCache(root_path=tmp_path)
    payload = {"sensor": {"sensor_index": 12, "pm2.5_cf_1": 8}}

    cache.save_reading("12", CachedReading(payload=payload, updated_at=UPDATED_AT))

    assert reading_filename("12") == "sensor-12-data.json"
    document = json.loads((tmp_path / "sensor-12-data.json").read_text())
    assert document["payload"] == payload
    assert cache.load_reading("12").payload == payload
    assert cache.load_reading("13") is None


def test_write_replaces_whole_entry_and_leaves_no_temp_files(tmp_path: Path) -> None:
    cache = JsonFileCache(root_path=tmp_path)
    later = datetime(2024, 1, 1, 13, 0, tzinfo=timezone.utc)

    cache.save_sensor_id(CachedSensorId(sensor_id="1", updated_at=UPDATED_AT))
    cache.save_sensor_id(CachedSensorId(sensor_id="2", updated_at=later))

    loaded = cache.load_sensor_id()
    assert loaded is not None
    assert loaded.sensor_id == "2"
    assert loaded.updated_at == later
    assert sorted(path.name for path in tmp_path.iterdir()) == ["sensor.json"]


def test_corrupt_entry_is_ignored(tmp_path: Path, caplog) -> None:
    (tmp_path / "sensor.json").write_text("{not json")
    cache = JsonFileCache(root_path=tmp_path)

    with caplog.at_level("WARNING"):
        assert cache.load_sensor_id() is None

    assert any(getattr(record, "cache_path", "").endswith("sensor.json") for record in caplog.records)


def test_entry_with_invalid_utf8_is_ignored(tmp_path: Path, caplog) -> None:
    (tmp_path / "sensor.json").write_bytes(b"\xff\xfe\x00garbage")
    (tmp_path / reading_filename("69223")).write_bytes(b"\xff\xfe\x00garbage")
    cache = JsonFileCache(root_path=tmp_path)

    with caplog.at_level("WARNING"):
        assert cache.load_sensor_id() is None
        assert cache.load_reading("69223") is None

    reasons = [record.reason for record in caplog.records if record.name == "storage.cache"]
    assert reasons == ["UnicodeDecodeError", "UnicodeDecodeError"]


def test_numeric_sensor_id_and_naive_timestamp_are_normalized(tmp_path: Path) -> None:
    (tmp_path / "sensor.json").write_text(
        json.dumps({"sensor_id": 69223, "updated_at": "2024-01-01T12:00:00"})
    )

    loaded = JsonFileCache(root_path=tmp_path).load_sensor_id()

    assert loaded is not None
    assert loaded.sensor_id == "69223"
    assert loaded.updated_at == UPDATED_AT
