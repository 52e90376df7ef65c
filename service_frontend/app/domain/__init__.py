"""
Frontend domain package: CMS DTOs, the maintenance gate and page view models.
"""

from .maintenance_gate import GateDecision, MaintenanceGate
from .models import CollectionEnvelope, ResponseEnvelope

__all__ = ["GateDecision", "MaintenanceGate", "CollectionEnvelope", "ResponseEnvelope"]
