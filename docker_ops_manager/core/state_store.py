"""Persistent state document for managed units."""

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..models.settings import ManagerSettings
from ..models.unit import Operation, StateDocument, UnitRecord, UnitStatus
from ..services.exceptions import StateStoreError
from ..utils.logging_config import log_operation

logger = logging.getLogger(__name__)

SCALAR_KEYS = ("last_unit", "last_operation", "last_config_source")


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with a Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _coerce_scalar(value: Any) -> Any:
    """Keep integers and booleans unquoted, everything else as a string."""
    if value is None or isinstance(value, (bool, int)):
        return value
    text = str(value)
    if text.isdigit():
        return int(text)
    if text in ("true", "false"):
        return text == "true"
    return text


class StateStore:
    """Reads and writes the state file.

    Every mutation loads the whole document, applies the change and writes
    it back through a temporary file renamed over the original. There is
    no locking: concurrent invocations are last-writer-wins.
    """

    def __init__(self, settings: ManagerSettings):
        """Initialize the state store.

        Args:
            settings: Manager settings providing the state file path and history bound
        """
        self.settings = settings
        self.state_file = Path(settings.state_file)

    # Document I/O

    def _read(self) -> StateDocument:
        if not self.state_file.exists():
            return StateDocument()
        try:
            with open(self.state_file, encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise StateStoreError(f"State file {self.state_file} is corrupt: {e}") from e
        except OSError as e:
            raise StateStoreError(f"Cannot read state file {self.state_file}: {e}") from e
        if not isinstance(raw, dict) or not isinstance(raw.get("state", {}), dict):
            raise StateStoreError(f"State file {self.state_file} has an unexpected layout")
        return StateDocument.from_dict(raw.get("state") or {})

    def _write(self, document: StateDocument) -> None:
        payload = {"config": self.settings.state_config(), "state": document.to_dict()}
        directory = self.state_file.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.state_file.name}.", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_name, self.state_file)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StateStoreError(f"Cannot write state file {self.state_file}: {e}") from e

    def load(self) -> StateDocument:
        """Load the state document, creating an empty one on first use."""
        if not self.state_file.exists():
            self._write(StateDocument())
            log_operation(logger, logging.DEBUG, "STATE", "", f"Initialized state file: {self.state_file}")
        return self._read()

    # Scalar values

    def get(self, key: str, default: Any = None) -> Any:
        """Get a top-level state value; None and empty strings read as the default."""
        value = getattr(self._read(), key, None) if key in SCALAR_KEYS else None
        if value is None or value == "":
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a top-level state value."""
        if key not in SCALAR_KEYS:
            raise StateStoreError(f"Unknown state key: {key}")
        document = self._read()
        setattr(document, key, _coerce_scalar(value))
        self._write(document)

    # Unit records

    def get_unit(self, name: str) -> Optional[UnitRecord]:
        return self._read().units.get(name)

    def list_units(self) -> List[UnitRecord]:
        return list(self._read().units.values())

    def history(self) -> List[str]:
        return list(self._read().history)

    def record_operation(self, name: str, operation: Union[Operation, str],
                         config_source: Optional[str] = None,
                         runtime_id: Optional[str] = None,
                         status: Optional[UnitStatus] = None) -> UnitRecord:
        """Create or update a unit record.

        The operation and timestamp are always replaced. Other fields are
        replaced only when supplied.
        """
        op_value = operation.value if isinstance(operation, Operation) else str(operation)
        document = self._read()
        record = document.units.get(name) or UnitRecord(name=name, last_operation=op_value,
                                                        last_operation_time="")
        record.last_operation = op_value
        record.last_operation_time = utc_timestamp()
        if config_source is not None:
            record.config_source = config_source
        if runtime_id is not None:
            record.runtime_id = runtime_id
        if status is not None:
            record.status = status
        document.units[name] = record
        self._write(document)
        log_operation(logger, logging.DEBUG, op_value, name,
                      f"Recorded operation with status {record.status.value}")
        return record

    def update_statuses(self, updates: Dict[str, Tuple[UnitStatus, Optional[str]]]) -> None:
        """Set status and runtime ID of several units in one write.

        Operation and timestamp are left untouched. Unknown names are ignored.
        """
        document = self._read()
        for name, (status, runtime_id) in updates.items():
            record = document.units.get(name)
            if record is None:
                continue
            record.status = status
            record.runtime_id = runtime_id
        self._write(document)

    def _touch(self, document: StateDocument, name: str) -> None:
        history = [name] + [entry for entry in document.history if entry != name]
        document.history = history[:self.settings.max_unit_history]

    def touch_history(self, name: str) -> None:
        """Move a unit to the front of the history."""
        document = self._read()
        self._touch(document, name)
        self._write(document)

    def mark_last(self, name: str, operation: Union[Operation, str],
                  config_source: Optional[str] = None) -> None:
        """Record the most recent unit and operation and touch the history."""
        document = self._read()
        document.last_unit = name
        document.last_operation = operation.value if isinstance(operation, Operation) else str(operation)
        if config_source is not None:
            document.last_config_source = config_source
        self._touch(document, name)
        self._write(document)

    def remove(self, name: str) -> bool:
        """Delete a unit record. Returns True when a record existed."""
        return bool(self.remove_many([name]))

    def remove_many(self, names: Iterable[str]) -> List[str]:
        """Delete several unit records in one write.

        Returns:
            Names whose records existed
        """
        names = list(names)
        document = self._read()
        removed = [name for name in names if document.units.pop(name, None) is not None]
        document.history = [entry for entry in document.history if entry not in names]
        if document.last_unit in names:
            document.last_unit = None
        self._write(document)
        for name in removed:
            log_operation(logger, logging.DEBUG, "STATE", name, "Removed unit record")
        return removed

    # Maintenance

    def clear(self) -> None:
        """Reset the state document to empty defaults."""
        self._write(StateDocument())
        log_operation(logger, logging.INFO, "STATE", "", "State cleared")

    def backup(self) -> Path:
        """Copy the state file next to itself with a timestamp suffix."""
        self.load()
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = self.state_file.with_name(f"{self.state_file.name}.backup.{stamp}")
        try:
            shutil.copy2(self.state_file, backup_path)
        except OSError as e:
            raise StateStoreError(f"Cannot back up state file: {e}") from e
        log_operation(logger, logging.INFO, "STATE", "", f"State backed up to {backup_path}")
        return backup_path

    def restore(self, backup_path: Union[str, Path]) -> None:
        """Replace the state with the contents of a backup file."""
        backup_path = Path(backup_path)
        if not backup_path.is_file():
            raise StateStoreError(f"Backup file not found: {backup_path}")
        try:
            with open(backup_path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StateStoreError(f"Cannot read backup file {backup_path}: {e}") from e
        if not isinstance(raw, dict) or not isinstance(raw.get("state", {}), dict):
            raise StateStoreError(f"Backup file {backup_path} has an unexpected layout")
        self._write(StateDocument.from_dict(raw.get("state") or {}))
        log_operation(logger, logging.INFO, "STATE", "", f"State restored from {backup_path}")

    def summary(self) -> str:
        """Human-readable overview of the state."""
        document = self.load()
        lines = [
            "=== State Summary ===",
            f"State file: {self.state_file}",
            f"Last unit: {document.last_unit or 'none'}",
            f"Last operation: {document.last_operation or 'none'}",
            f"Last config source: {document.last_config_source or 'none'}",
            f"Tracked units: {len(document.units)}",
        ]
        if document.history:
            lines.append(f"Recent units: {', '.join(document.history)}")
        for record in document.units.values():
            lines.append(
                f"  - {record.name}: {record.status.value} "
                f"(last {record.last_operation} at {record.last_operation_time})"
            )
        return "\n".join(lines)
