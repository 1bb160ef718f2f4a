"""Background schedule that periodically purges expired OTPs."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from mfa_callbacks.otp.manager import OtpManager

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "otp_expiry_sweep"


def sweep_job(manager: OtpManager) -> None:
    removed = manager.sweep_expired()
    if removed:
        logger.info("Purged %d expired OTP(s)", removed)


def create_scheduler(manager: OtpManager, interval_seconds: int) -> AsyncIOScheduler:
    """Build (but do not start) a scheduler running the expiry sweep.

    Overlapping or missed runs collapse into a single run; the sweep is
    idempotent so a delayed or skipped run only delays memory reclamation.
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        sweep_job,
        trigger="interval",
        seconds=interval_seconds,
        args=[manager],
        id=SWEEP_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler
