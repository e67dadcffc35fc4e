"""Reminder Scheduler - Periodic reminders for stalled applications

A stall window opens with an application's most recent audit action. Once
the window is older than the configured threshold (in calendar days), one
reminder is sent for it. The ledger key (application, action, email type)
guarantees at most one reminder per window, however often the job runs.
"""
import asyncio
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pymongo.errors import PyMongoError

from ..config.settings import settings
from ..domain.enums import ApplicationState, ActorRole, EmailType, LedgerStatus, ACTIONABLE_STATES
from ..domain.models import Application, NotificationLedgerEntry, ReminderRunSummary
from ..engine.audit_log import AuditLog
from ..repositories.application_repo import ApplicationRepository
from ..repositories.notification_ledger_repo import NotificationLedgerRepository
from ..services.notification_service import NotificationService
from ..utils.logger import get_logger
from ..utils.idgen import generate_id, generate_ledger_entry_id
from ..utils.time import utc_now, elapsed_calendar_days, format_iso

logger = get_logger(__name__)

# PENDING reservations older than this are assumed orphaned by a run that died before sending
STALE_RESERVATION_AGE = timedelta(hours=1)

# Attempts at recording SENT once a reminder has gone out
MARK_SENT_ATTEMPTS = 3


@dataclass(frozen=True)
class ReminderRule:
    """Which reminder to send and to whom"""
    email_type: EmailType
    recipient: ActorRole


S = ApplicationState
R = ActorRole

# (current state, role of the last actor) -> reminder. Pairs not listed get no reminder.
REMINDER_TABLE: Dict[Tuple[ApplicationState, ActorRole], ReminderRule] = {
    (S.DRAFT, R.APPLICANT): ReminderRule(EmailType.REMINDER_SUBMIT_DRAFT, R.APPLICANT),
    (S.DRAFT, R.INSTITUTIONAL_REP): ReminderRule(EmailType.REMINDER_SUBMIT_DRAFT, R.APPLICANT),
    (S.DRAFT, R.DAC_MEMBER): ReminderRule(EmailType.REMINDER_SUBMIT_DRAFT, R.APPLICANT),
    (S.INSTITUTIONAL_REP_REVIEW, R.APPLICANT): ReminderRule(
        EmailType.REMINDER_SUBMIT_INSTITUTIONAL_REP_REVIEW, R.INSTITUTIONAL_REP
    ),
    (S.REP_REVISION, R.INSTITUTIONAL_REP): ReminderRule(
        EmailType.REMINDER_SUBMIT_REVISIONS_INSTITUTIONAL_REP, R.APPLICANT
    ),
    (S.DAC_REVIEW, R.INSTITUTIONAL_REP): ReminderRule(EmailType.REMINDER_SUBMIT_DAC_REVIEW, R.DAC_MEMBER),
    (S.DAC_REVIEW, R.APPLICANT): ReminderRule(EmailType.REMINDER_REVIEW_SUBMITTED_REVISIONS, R.DAC_MEMBER),
    (S.DAC_REVISIONS_REQUESTED, R.DAC_MEMBER): ReminderRule(
        EmailType.REMINDER_SUBMIT_REVISIONS_DAC_REVIEW, R.APPLICANT
    ),
}

del S, R


def _full_name(section: Any) -> Optional[str]:
    parts = [p for p in (section.first_name, section.last_name) if p]
    return " ".join(parts) if parts else None


class ReminderService:
    """
    One reminder pass over every actionable application

    Runs never overlap: a second `run()` while one is active returns at once
    with `already_running` set. `request_cancel()` stops the pass before the
    next application; a send already in flight finishes. Storage calls run
    in worker threads so a long scan leaves the event loop free.
    """

    def __init__(
        self,
        application_repo: Optional[ApplicationRepository] = None,
        audit_log: Optional[AuditLog] = None,
        ledger_repo: Optional[NotificationLedgerRepository] = None,
        sender: Optional[Any] = None,
        threshold_days: Optional[int] = None,
        dac_notification_email: Optional[str] = None
    ):
        self.application_repo = application_repo if application_repo is not None else ApplicationRepository()
        self.audit_log = audit_log if audit_log is not None else AuditLog()
        self.ledger_repo = ledger_repo if ledger_repo is not None else NotificationLedgerRepository()
        self.sender = sender if sender is not None else NotificationService()
        self.threshold_days = (
            threshold_days if threshold_days is not None else settings.reminder_threshold_days
        )
        self.dac_notification_email = (
            dac_notification_email if dac_notification_email is not None
            else settings.dac_notification_email
        )
        self._run_lock = threading.Lock()
        self._cancel_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def request_cancel(self) -> None:
        """Ask the active run to stop before its next application"""
        self._cancel_event.set()

    async def run(self, now: Optional[datetime] = None) -> ReminderRunSummary:
        """
        Scan actionable applications and send due reminders

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            ReminderRunSummary with per-run counters
        """
        summary = ReminderRunSummary(run_id=generate_id("RUN"))
        if not self._run_lock.acquire(blocking=False):
            summary.already_running = True
            logger.warning("Reminder run skipped: previous run still in progress", extra={"run_id": summary.run_id})
            return summary

        try:
            self._cancel_event.clear()
            now = now or utc_now()
            summary.reference_time = now
            start_time = utc_now()

            # Reservation age is wall-clock time, independent of the reference `now`
            await asyncio.to_thread(self.ledger_repo.release_stale, utc_now() - STALE_RESERVATION_AGE)
            applications = await asyncio.to_thread(self.application_repo.list_by_states, ACTIONABLE_STATES)

            for application in applications:
                if self._cancel_event.is_set():
                    summary.cancelled = True
                    logger.info(
                        f"Reminder run cancelled after {summary.scanned} applications",
                        extra={"run_id": summary.run_id}
                    )
                    break

                summary.scanned += 1
                try:
                    if await self._process_application(application, now):
                        summary.sent += 1
                    else:
                        summary.skipped += 1
                except Exception as e:
                    summary.failed += 1
                    logger.error(
                        f"Reminder failed for application {application.application_id}: {e}",
                        extra={
                            "run_id": summary.run_id,
                            "application_id": application.application_id,
                            "state": application.state.value,
                            "error_code": getattr(e, "error_code", type(e).__name__),
                        }
                    )

            duration_ms = (utc_now() - start_time).total_seconds() * 1000
            logger.info(
                f"Reminder run complete: {summary.scanned} scanned, {summary.sent} sent, "
                f"{summary.skipped} skipped, {summary.failed} failed in {round(duration_ms, 2)}ms "
                f"(reference time {format_iso(now)})",
                extra={"run_id": summary.run_id}
            )
            return summary
        finally:
            self._run_lock.release()

    async def _process_application(self, application: Application, now: datetime) -> bool:
        """Send the due reminder for one application. Returns True if one was sent."""
        application_id = application.application_id
        log_extra = {"application_id": application_id, "state": application.state.value}

        last_action = await asyncio.to_thread(self.audit_log.most_recent_action, application_id)
        if last_action is not None:
            window_start = last_action.created_at
            action_id: Optional[str] = last_action.action_id
            last_actor = last_action.user_role
        elif application.state == ApplicationState.DRAFT:
            # Never transitioned: the window opens at creation, by the owner
            window_start = application.created_at
            action_id = None
            last_actor = ActorRole.APPLICANT
        else:
            logger.warning(f"Application {application_id} has no actions outside DRAFT", extra=log_extra)
            return False

        elapsed_days = elapsed_calendar_days(window_start, now)
        if elapsed_days <= self.threshold_days:
            return False

        rule = REMINDER_TABLE.get((application.state, last_actor))
        if rule is None:
            logger.debug(
                f"No reminder for {application.state.value} after {last_actor.value}", extra=log_extra
            )
            return False

        recipients = self._resolve_recipients(application, rule.recipient)
        if not recipients:
            logger.warning(
                f"No {rule.recipient.value} address for application {application_id}",
                extra={**log_extra, "email_type": rule.email_type.value}
            )
            return False

        entry = NotificationLedgerEntry(
            ledger_id=generate_ledger_entry_id(),
            application_id=application_id,
            application_action_id=action_id,
            email_type=rule.email_type,
            recipient_emails=recipients,
            status=LedgerStatus.PENDING,
            created_at=utc_now()
        )
        if not await asyncio.to_thread(self.ledger_repo.reserve, entry):
            return False

        await asyncio.to_thread(self.ledger_repo.mark_sending, entry.ledger_id)
        try:
            await self.sender.send(
                rule.email_type,
                recipients,
                self._template_data(application, elapsed_days)
            )
        except Exception:
            # Free the window so the next run retries
            await asyncio.to_thread(self.ledger_repo.release, entry.ledger_id)
            raise

        log_extra.update({"action_id": action_id, "email_type": rule.email_type.value})
        await self._record_sent(entry.ledger_id, log_extra)
        logger.info(f"Sent {rule.email_type.value} for application {application_id}", extra=log_extra)
        return True

    async def _record_sent(self, ledger_id: str, log_extra: Dict[str, Any]) -> None:
        """
        Flip the entry to SENT once the reminder has gone out

        The send already happened, so a failing ledger write must not fail the
        application or free the window. After the last attempt the entry stays
        SENDING, which still blocks a second reminder for the window.
        """
        for attempt in range(1, MARK_SENT_ATTEMPTS + 1):
            try:
                await asyncio.to_thread(self.ledger_repo.mark_sent, ledger_id, utc_now())
                return
            except PyMongoError as e:
                logger.warning(
                    f"Could not mark reminder {ledger_id} sent (attempt {attempt}/{MARK_SENT_ATTEMPTS}): {e}",
                    extra=log_extra
                )
        logger.error(f"Reminder {ledger_id} was sent but is still recorded as SENDING", extra=log_extra)

    def _resolve_recipients(self, application: Application, role: ActorRole) -> List[str]:
        content = application.content
        if role == ActorRole.APPLICANT:
            address = content.applicant.institutional_email
        elif role == ActorRole.INSTITUTIONAL_REP:
            address = content.institutional_rep.institutional_email
        else:
            address = self.dac_notification_email
        return [address] if address else []

    @staticmethod
    def _template_data(application: Application, elapsed_days: int) -> Dict[str, Any]:
        content = application.content
        return {
            "application_id": application.application_id,
            "state": application.state.value,
            "applicant_name": _full_name(content.applicant),
            "rep_name": _full_name(content.institutional_rep),
            "project_title": content.project.title,
            "days_stalled": elapsed_days,
        }


class ReminderScheduler:
    """APScheduler wrapper running the reminder pass on a fixed interval"""

    JOB_ID = "send_application_reminders"

    def __init__(self, service: Optional[ReminderService] = None):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.service = service if service is not None else ReminderService()
        self._is_running = False

    def start(self) -> None:
        """Start the scheduler"""
        if self._is_running:
            logger.warning("Scheduler already running")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self.service.run,
            trigger=IntervalTrigger(hours=settings.reminder_interval_hours),
            id=self.JOB_ID,
            name="Send reminders for stalled applications",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Reminder scheduler started (every {settings.reminder_interval_hours}h, "
            f"threshold {self.service.threshold_days} days)"
        )

    def stop(self) -> None:
        """Stop the scheduler, letting an in-flight send finish"""
        self.service.request_cancel()
        if self.scheduler:
            self.scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("Reminder scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running"""
        return self._is_running


# Global scheduler instance
_scheduler: Optional[ReminderScheduler] = None


def get_scheduler() -> ReminderScheduler:
    """Get or create scheduler instance"""
    global _scheduler
    if _scheduler is None:
        _scheduler = ReminderScheduler()
    return _scheduler


def start_scheduler() -> None:
    """Start the global scheduler"""
    scheduler = get_scheduler()
    scheduler.start()


def stop_scheduler() -> None:
    """Stop the global scheduler"""
    global _scheduler
    if _scheduler:
        _scheduler.stop()
        _scheduler = None


def scheduler_status() -> Dict[str, Any]:
    """Scheduler state for the health endpoint; never creates the scheduler"""
    if _scheduler is None:
        return {"running": False, "run_in_progress": False}
    return {
        "running": _scheduler.is_running,
        "run_in_progress": _scheduler.service.is_running,
    }
