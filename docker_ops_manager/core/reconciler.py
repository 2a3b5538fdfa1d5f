"""Reconcile stored unit records with the runtime's inventory."""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..models.unit import UnitStatus
from ..utils.logging_config import log_operation
from .runtime import DockerRuntime, RuntimeContainer
from .state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Statuses written by a sync, keyed by unit name."""
    statuses: Dict[str, UnitStatus] = field(default_factory=dict)
    matched: Dict[str, str] = field(default_factory=dict)  # unit -> runtime container name

    @property
    def missing(self) -> List[str]:
        return [name for name, status in self.statuses.items() if status is UnitStatus.REMOVED]


def status_from_phrase(phrase: str) -> UnitStatus:
    """Map a 'docker ps' status phrase to a unit status."""
    phrase = phrase.strip()
    if phrase.startswith("Up"):
        return UnitStatus.RUNNING
    if phrase.startswith("Exited"):
        return UnitStatus.EXITED
    if phrase.startswith("Created"):
        return UnitStatus.CREATED
    return UnitStatus.UNKNOWN


def match_container(name: str, inventory: List[RuntimeContainer]) -> Optional[RuntimeContainer]:
    """Find a unit's container by exact name, else by a compose-style namespaced name."""
    for container in inventory:
        if container.name == name:
            return container
    namespaced = re.compile(rf"^.+[-_]{re.escape(name)}([-_]\d+)?$")
    for container in inventory:
        if namespaced.match(container.name):
            return container
    return None


class ReconciliationEngine:
    """Treats the runtime as ground truth and corrects stored statuses."""

    def __init__(self, runtime: DockerRuntime, store: StateStore):
        self.runtime = runtime
        self.store = store

    def sync(self) -> SyncReport:
        """Refresh the status and runtime ID of every tracked unit.

        Timestamps are left alone, so running sync twice without runtime
        changes produces the same document.
        """
        inventory = self.runtime.inventory()
        report = SyncReport()
        updates: Dict[str, Tuple[UnitStatus, Optional[str]]] = {}

        for record in self.store.list_units():
            container = match_container(record.name, inventory)
            if container is None:
                updates[record.name] = (UnitStatus.REMOVED, None)
            else:
                updates[record.name] = (status_from_phrase(container.status_phrase), container.id)
                report.matched[record.name] = container.name
            report.statuses[record.name] = updates[record.name][0]

        if updates:
            self.store.update_statuses(updates)
        log_operation(logger, logging.INFO, "SYNC", "",
                      f"Synchronized {len(updates)} unit(s), {len(report.missing)} missing")
        return report

    def force_sync_after_cleanup(self) -> List[str]:
        """Drop records of tracked units that no longer exist under their exact name."""
        present = {container.name for container in self.runtime.inventory()}
        missing = [record.name for record in self.store.list_units() if record.name not in present]
        if not missing:
            return []
        removed = self.store.remove_many(missing)
        log_operation(logger, logging.INFO, "CLEANUP", "",
                      f"Removed {len(removed)} stale record(s): {', '.join(removed)}")
        return removed
