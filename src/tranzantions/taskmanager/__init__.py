"""Task manager — periodic background jobs.

Runs the Blockscout poller and the registration gauge refresh on asyncio
background tasks.
"""

from __future__ import annotations

from tranzantions.taskmanager.manager import CronJob, JobState, TaskManager

__all__ = ["CronJob", "JobState", "TaskManager"]
