"""
JSON File Storage

One snapshot file per user under the configured data directory. This is the
default backend: it needs no credentials and the files can be inspected or
backed up by hand.

Writes go to a temporary file that is then renamed over the old snapshot,
so a crash mid-write never leaves a truncated ledger behind.
"""

import json
import os
import re
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from bliq_money.config import get_settings
from bliq_money.models.ledger import FinanceState
from bliq_money.services.storage.interface import (
    LedgerStorageInterface,
    StorageError,
)


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileLedgerStorage(LedgerStorageInterface):
    """Snapshot storage in `<data_dir>/ledgers/<user_id>.json`."""

    def __init__(self, directory: Optional[Path] = None):
        self._directory = Path(directory or get_settings().storage.ledgers_dir)

    def _path_for(self, user_id: str) -> Path:
        safe_name = _UNSAFE_CHARS.sub("_", user_id)
        if not safe_name.strip("._"):
            raise StorageError(f"Invalid user id for storage: {user_id!r}")
        return self._directory / f"{safe_name}.json"

    async def load(self, user_id: str) -> Optional[FinanceState]:
        path = self._path_for(user_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return FinanceState.model_validate(data)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(
                f"Failed to read ledger file {path}: {e}",
                user_message="Your saved data could not be loaded.",
            )
        except PydanticValidationError as e:
            raise StorageError(
                f"Ledger file {path} is corrupt: {e.error_count()} invalid fields",
                user_message="Your saved data is corrupt and could not be loaded.",
            )

    async def save(self, user_id: str, state: FinanceState) -> bool:
        path = self._path_for(user_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(state.to_snapshot(), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            os.replace(tmp_path, path)
            return True
        except OSError as e:
            raise StorageError(
                f"Failed to write ledger file {path}: {e}",
                user_message="Your changes could not be saved.",
            )

    async def delete(self, user_id: str) -> bool:
        path = self._path_for(user_id)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete ledger file {path}: {e}")
