"""JSON-file persistence for yearly plan documents."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..errors import PlanError

DEFAULT_DATA_DIR = Path("data")
LOGGER = logging.getLogger(__name__)


class StoreError(PlanError):
    """Raised when a stored plan document cannot be read."""


class PlanStore:
    """Opaque document store keyed by plan identifier (the year as text).

    Each plan lives in ``<root>/<plan_id>.json``. The store owns paths and the
    serialisation format; callers only exchange plain dictionaries.
    """

    def __init__(self, root: Path | str = DEFAULT_DATA_DIR) -> None:
        self.root = Path(root)

    @classmethod
    def from_config(cls, config: Mapping[str, Any], *, base_dir: Path | None = None) -> "PlanStore":
        paths = config.get("paths") or {}
        data_value = paths.get("data")
        candidate = Path(str(data_value).strip()) if data_value and str(data_value).strip() else DEFAULT_DATA_DIR
        if not candidate.is_absolute() and base_dir is not None:
            candidate = base_dir / candidate
        return cls(candidate)

    def _path_for(self, plan_id: str) -> Path:
        return self.root / f"{plan_id}.json"

    def ensure_ready(self) -> None:
        """Create the store directory when it does not exist yet."""
        self.root.mkdir(parents=True, exist_ok=True)

    def load(self, plan_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored document for ``plan_id`` or ``None`` when absent."""
        path = self._path_for(plan_id)
        try:
            with path.open("r", encoding="utf-8") as handle:
                document = json.load(handle)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as error:
            raise StoreError(f"Plan file {path} is not valid JSON: {error}") from error
        LOGGER.debug("Loaded plan %s from %s", plan_id, path)
        return document

    def save(self, plan_id: str, plan: Mapping[str, Any]) -> None:
        """Persist ``plan`` atomically, replacing any previous document."""
        self.ensure_ready()
        path = self._path_for(plan_id)
        handle, temp_name = tempfile.mkstemp(prefix=f".{plan_id}.", suffix=".tmp", dir=self.root)
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                json.dump(plan, stream, indent=2, ensure_ascii=False)
                stream.write("\n")
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        LOGGER.debug("Saved plan %s to %s", plan_id, path)

    def delete(self, plan_id: str) -> bool:
        """Remove the stored document; return ``False`` when nothing was stored."""
        path = self._path_for(plan_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        LOGGER.info("Deleted plan %s", plan_id)
        return True

    def list_ids(self) -> List[str]:
        """Return the sorted identifiers of every stored plan."""
        if not self.root.is_dir():
            return []
        return sorted(entry.stem for entry in self.root.iterdir() if entry.is_file() and entry.suffix == ".json")
