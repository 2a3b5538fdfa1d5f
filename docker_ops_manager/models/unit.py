"""Unit records and the persisted state document."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Operation(Enum):
    """Lifecycle operation enumeration."""
    CREATE = "CREATE"
    START = "START"
    STOP = "STOP"
    FORCE_STOP = "FORCE_STOP"
    RESTART = "RESTART"
    REMOVE = "REMOVE"


class UnitStatus(Enum):
    """Unit status enumeration."""
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"
    EXITED = "exited"
    REMOVED = "removed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "UnitStatus":
        """Parse a stored status string, falling back to UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass
class UnitRecord:
    """Record of the last operation performed on a managed unit."""
    name: str  # Runtime identifier
    last_operation: str  # Operation value, kept as a string for forward compatibility
    last_operation_time: str  # ISO-8601 UTC timestamp
    config_source: Optional[str] = None  # Absolute path of the config document
    runtime_id: Optional[str] = None  # Docker container ID
    status: UnitStatus = UnitStatus.UNKNOWN

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict (the name is the mapping key)."""
        return {
            "last_operation": self.last_operation,
            "last_operation_time": self.last_operation_time,
            "config_source": self.config_source,
            "runtime_id": self.runtime_id,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "UnitRecord":
        """Deserialize from JSON data."""
        return cls(
            name=name,
            last_operation=data.get("last_operation") or "",
            last_operation_time=data.get("last_operation_time") or "",
            config_source=data.get("config_source") or None,
            runtime_id=data.get("runtime_id") or None,
            status=UnitStatus.parse(data.get("status")),
        )


@dataclass
class StateDocument:
    """The state section of the persisted state file."""
    last_unit: Optional[str] = None
    last_operation: Optional[str] = None
    last_config_source: Optional[str] = None
    history: List[str] = field(default_factory=list)  # Most recent first
    units: Dict[str, UnitRecord] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "last_unit": self.last_unit,
            "last_operation": self.last_operation,
            "last_config_source": self.last_config_source,
            "history": list(self.history),
            "units": {name: record.to_dict() for name, record in self.units.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StateDocument":
        """Deserialize from JSON data."""
        return cls(
            last_unit=data.get("last_unit"),
            last_operation=data.get("last_operation"),
            last_config_source=data.get("last_config_source"),
            history=[name for name in data.get("history", []) if name],
            units={
                name: UnitRecord.from_dict(name, record)
                for name, record in (data.get("units") or {}).items()
            },
        )
