"""Models for Docker Ops Manager."""

from .settings import ManagerSettings
from .unit import Operation, StateDocument, UnitRecord, UnitStatus

__all__ = [
    'ManagerSettings',
    'Operation',
    'StateDocument',
    'UnitRecord',
    'UnitStatus'
]
