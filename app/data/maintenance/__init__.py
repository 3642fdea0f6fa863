from .maintenance_task import MaintenanceTask

__all__ = ['MaintenanceTask']
