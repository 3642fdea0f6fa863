"""
Maintenance Services
Presentation services for maintenance domain entities
"""

from .maintenance_service import MaintenanceService

__all__ = [
    'MaintenanceService',
]
