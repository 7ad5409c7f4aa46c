from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from platformdirs import user_data_dir

logger = logging.getLogger(__name__)

@dataclass
class FilterStore:
    """Last-used filters per admin list, kept between runs."""

    app_name: str = "pharmacy-admin"
    filename: str = "filters.json"
    base_dir: Path | None = None

    def _path(self) -> Path:
        base = self.base_dir or Path(user_data_dir(self.app_name, "PharmacyAdmin"))
        base.mkdir(parents=True, exist_ok=True)
        return base / self.filename

    def _read_all(self) -> dict[str, dict[str, Any]]:
        path = self._path()
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("filter_store_corrupt", extra={"path": str(path)})
            path.unlink()
            return {}
        if not isinstance(data, dict):
            logger.warning("filter_store_corrupt", extra={"path": str(path)})
            path.unlink()
            return {}
        return {key: value for key, value in data.items() if isinstance(value, dict)}

    def save(self, list_name: str, filters: Mapping[str, Any]) -> None:
        data = self._read_all()
        data[list_name] = {key: value for key, value in filters.items() if value is not None}
        self._path().write_text(json.dumps(data, indent=2, sort_keys=True, default=str))

    def load(self, list_name: str) -> dict[str, Any]:
        return dict(self._read_all().get(list_name, {}))

    def clear(self, list_name: str | None = None) -> None:
        path = self._path()
        if list_name is None:
            if path.exists():
                path.unlink()
            return
        data = self._read_all()
        if data.pop(list_name, None) is not None:
            path.write_text(json.dumps(data, indent=2, sort_keys=True, default=str))
