"""
Application services.

Exports:
  - QueueCoordinator, JobRef: Single-flight dispatch across job kinds
  - BatchJobRunner: Bulk labeling loop
  - StuckJobWatchdog: Recovery of stranded processing jobs
  - JobService: Labeling job creation, cancel and status for the API
"""

from ai_orchestrator.application.services.batch_runner import BatchJobRunner
from ai_orchestrator.application.services.job_service import JobService
from ai_orchestrator.application.services.queue_coordinator import JobRef, QueueCoordinator
from ai_orchestrator.application.services.stuck_job_watchdog import StuckJobWatchdog

__all__ = [
    "BatchJobRunner",
    "JobService",
    "JobRef",
    "QueueCoordinator",
    "StuckJobWatchdog",
]
