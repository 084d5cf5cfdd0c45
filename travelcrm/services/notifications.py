import asyncio
import logging
import os
import smtplib
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from typing import Optional
from uuid import UUID

from fastapi import BackgroundTasks

from travelcrm.models.agent import Agent
from travelcrm.models.lead import Lead

logger = logging.getLogger(__name__)

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_FROM = os.getenv("SMTP_FROM")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "1") == "1"
MANAGEMENT_URL = os.getenv("MANAGEMENT_URL", "http://localhost:3001")

# Delivery tasks started outside a request; kept referenced until they finish
_pending_deliveries = set()


@dataclass
class AssignmentNotice:
    """Plain snapshot of an assignment, safe to use after the session closes."""

    agent_name: str
    agent_email: Optional[str]
    lead_id: UUID
    lead_name: Optional[str]
    lead_email: Optional[str]
    lead_phone: Optional[str]
    destination: Optional[str]
    travel_date: Optional[datetime]
    number_of_travelers: Optional[int]
    assigned_by_name: Optional[str]
    assignment_mode: str


def build_assignment_email(notice: AssignmentNotice, sender: str) -> EmailMessage:
    how = "automatically assigned" if notice.assignment_mode == "auto" else "manually assigned"
    by = f" by {notice.assigned_by_name}" if notice.assigned_by_name else ""

    details = [
        ("Name", notice.lead_name),
        ("Email", notice.lead_email),
        ("Phone", notice.lead_phone),
        ("Destination", notice.destination),
        ("Travel date", notice.travel_date.date().isoformat() if notice.travel_date else None),
        ("Travelers", notice.number_of_travelers),
    ]
    lines = [
        f"Hi {notice.agent_name},",
        "",
        f"A lead has been {how} to you{by}.",
        "",
    ]
    lines += [f"{label}: {value}" for label, value in details if value]
    lines += ["", f"Open it in the console: {MANAGEMENT_URL}/leads/{notice.lead_id}"]

    message = EmailMessage()
    message["Subject"] = f"New Lead Assigned: {notice.lead_name or 'Lead'}"
    message["From"] = sender
    message["To"] = notice.agent_email
    message.set_content("\n".join(lines))
    return message


class AssignmentNotifier:
    """
    Best-effort "new lead assigned" emails.

    `notify` never blocks and never raises: delivery runs after the response
    (request background tasks) or as a detached asyncio task, and every
    failure is logged and dropped.
    """

    def __init__(
        self,
        background_tasks: Optional[BackgroundTasks] = None,
        host: Optional[str] = SMTP_HOST,
        port: int = SMTP_PORT,
        username: Optional[str] = SMTP_USER,
        password: Optional[str] = SMTP_PASSWORD,
        sender: Optional[str] = SMTP_FROM,
        use_tls: bool = SMTP_USE_TLS,
    ):
        self.background_tasks = background_tasks
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls

    def notify(
        self,
        agent: Agent,
        lead: Lead,
        assigned_by: Optional[Agent] = None,
        mode: str = "auto",
    ) -> None:
        notice = AssignmentNotice(
            agent_name=agent.full_name,
            agent_email=agent.email,
            lead_id=lead.lead_id,
            lead_name=lead.name,
            lead_email=lead.email,
            lead_phone=lead.phone,
            destination=lead.destination,
            travel_date=lead.travel_date,
            number_of_travelers=lead.number_of_travelers,
            assigned_by_name=assigned_by.full_name if assigned_by else None,
            assignment_mode=mode,
        )
        if not notice.agent_email:
            logger.warning("Cannot send assignment email: agent %s has no email address", agent.agent_id)
            return

        logger.info("Queueing lead assignment email to %s for lead %s", notice.agent_email, notice.lead_id)
        if self.background_tasks is not None:
            self.background_tasks.add_task(self.send_assignment_notice, notice)
            return

        task = asyncio.get_running_loop().create_task(self.send_assignment_notice(notice))
        _pending_deliveries.add(task)
        task.add_done_callback(_pending_deliveries.discard)

    async def send_assignment_notice(self, notice: AssignmentNotice) -> bool:
        if not (self.host and self.sender):
            logger.error(
                "Email configuration is incomplete; lead assignment email for %s not sent",
                notice.lead_id,
            )
            return False

        message = build_assignment_email(notice, self.sender)
        try:
            await asyncio.to_thread(self._deliver, message)
        except Exception:
            logger.exception("Failed to send lead assignment email to %s", notice.agent_email)
            return False

        logger.info("Lead assignment email sent to %s for lead %s", notice.agent_email, notice.lead_id)
        return True

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)


def get_notifier(background_tasks: BackgroundTasks) -> AssignmentNotifier:
    """FastAPI dependency: a notifier that delivers after the response is sent."""
    return AssignmentNotifier(background_tasks=background_tasks)
