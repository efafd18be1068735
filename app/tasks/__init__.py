"""
Background Tasks Module

This module contains all background task definitions for ARQ workers.

Task Organization:
-----------------
- notification_tasks.py: In-app notifications (quiz published, ...)

How Tasks Work:
--------------
1. FastAPI app enqueues a job: await pool.enqueue_job('task_name', arg=value)
2. Redis stores the job in a queue
3. ARQ worker polls Redis and picks up the job
4. Worker executes the task function

Task functions receive a special `ctx` parameter:
- ctx['redis']: Redis connection for the worker
- ctx['job_id']: Unique ID of this job
- ctx['job_try']: Which retry attempt this is (1, 2, 3...)

Running Workers:
---------------
    arq app.worker.WorkerSettings
"""

from app.tasks.notification_tasks import send_notifications

# These names are used when enqueueing: enqueue_job('send_notifications', ...)
__all__ = [
    "send_notifications",
]
