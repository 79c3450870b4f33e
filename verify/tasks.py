"""
Celery tasks for OTP housekeeping.
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name='verify.tasks.task_expire_otps', ignore_result=True)
def task_expire_otps():
    """Mark pending codes past their expiry as expired. Runs every minute via beat."""
    from verify.otp_service import expire_stale_otps
    return expire_stale_otps()
