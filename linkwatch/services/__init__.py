"""
Services package.

Provides the monitoring collector and its scheduler.
"""
from linkwatch.services.collector import Collector, get_collector
from linkwatch.services.scheduler import SchedulerService, get_scheduler_service

__all__ = [
    "Collector",
    "get_collector",
    "SchedulerService",
    "get_scheduler_service",
]
