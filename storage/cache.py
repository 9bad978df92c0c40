from __future__ import annotations

import json
import logging
import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from models.schemas import CachedReading, CachedSensorId
from settings import get_settings

logger = logging.getLogger(__name__)

SENSOR_ID_FILENAME = "sensor.json"

_Entry = TypeVar("_Entry", bound=BaseModel)


def reading_filename(sensor_id: str) -> str:
    return f"sensor-{sensor_id}-data.json"


class JsonFileCache:
    """Cache entries stored as one JSON document per file.

    Entries are replaced wholesale: each write goes to a temporary file in
    the cache directory which is then renamed over the target.
    """

    def __init__(self, root_path: Path) -> None:
        self.root_path = root_path

    def load_sensor_id(self) -> Optional[CachedSensorId]:
        return self._read(SENSOR_ID_FILENAME, CachedSensorId)

    def save_sensor_id(self, entry: CachedSensorId) -> None:
        self._write(SENSOR_ID_FILENAME, entry)

    def load_reading(self, sensor_id: str) -> Optional[CachedReading]:
        return self._read(reading_filename(sensor_id), CachedReading)

    def save_reading(self, sensor_id: str, entry: CachedReading) -> None:
        self._write(reading_filename(sensor_id), entry)

    def _read(self, filename: str, model: Type[_Entry]) -> Optional[_Entry]:
        path = self.root_path / filename
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return model.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "Ignoring unreadable cache entry",
                extra={"cache_path": str(path), "reason": type(exc).__name__},
            )
            return None

    def _write(self, filename: str, entry: BaseModel) -> None:
        self.root_path.mkdir(parents=True, exist_ok=True)
        path = self.root_path / filename
        document = json.dumps(entry.model_dump(mode="json"), indent=2, sort_keys=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.root_path, prefix=f".{filename}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(document)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Cache entry written", extra={"cache_path": str(path)})


@lru_cache
def build_default_cache(root_path: Optional[str] = None) -> JsonFileCache:
    settings = get_settings()
    cache_root = settings.cache_dir if root_path is None else root_path
    return JsonFileCache(root_path=Path(cache_root))
