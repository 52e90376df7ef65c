"""
CMS health monitoring for the frontend.
"""

from .monitor import CmsHealthMonitor, HealthState

__all__ = ["CmsHealthMonitor", "HealthState"]
