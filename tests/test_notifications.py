"""Tests for assignment emails."""

import asyncio
from datetime import datetime
from uuid import uuid4

from fastapi import BackgroundTasks

from travelcrm.models import Agent, Lead
from travelcrm.services import notifications
from travelcrm.services.notifications import AssignmentNotice, AssignmentNotifier, build_assignment_email


def _agent(email="arjun@travel.example.com"):
    return Agent(agent_id=uuid4(), full_name="Arjun", email=email)


def _lead():
    return Lead(
        lead_id=uuid4(),
        name="Ananya Rao",
        email="ananya@example.com",
        phone="+919900112233",
        destination="Maldives",
        travel_date=datetime(2026, 11, 2),
        number_of_travelers=2,
    )


def _notice(**overrides):
    fields = {
        "agent_name": "Arjun",
        "agent_email": "arjun@travel.example.com",
        "lead_id": uuid4(),
        "lead_name": "Ananya Rao",
        "lead_email": None,
        "lead_phone": "+919900112233",
        "destination": "Maldives",
        "travel_date": None,
        "number_of_travelers": None,
        "assigned_by_name": None,
        "assignment_mode": "auto",
    }
    fields.update(overrides)
    return AssignmentNotice(**fields)


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, message):
        FakeSMTP.sent.append(message)


class BrokenSMTP(FakeSMTP):
    def __init__(self, host, port, timeout=None):
        raise OSError("connection refused")


class TestBuildAssignmentEmail:

    def test_auto_assignment(self):
        notice = _notice(travel_date=datetime(2026, 11, 2), number_of_travelers=2)
        message = build_assignment_email(notice, "crm@travel.example.com")

        body = message.get_content()
        assert message["Subject"] == "New Lead Assigned: Ananya Rao"
        assert message["To"] == "arjun@travel.example.com"
        assert "automatically assigned to you." in body
        assert "Travel date: 2026-11-02" in body
        assert "Travelers: 2" in body
        assert "Email:" not in body
        assert f"/leads/{notice.lead_id}" in body

    def test_manual_assignment_names_assigner(self):
        message = build_assignment_email(_notice(assignment_mode="manual", assigned_by_name="Meera"), "crm@x.com")
        assert "manually assigned to you by Meera." in message.get_content()


class TestSendAssignmentNotice:

    async def test_unconfigured_returns_false(self):
        notifier = AssignmentNotifier(host=None, sender=None)
        assert await notifier.send_assignment_notice(_notice()) is False

    async def test_delivered(self, monkeypatch):
        FakeSMTP.sent = []
        monkeypatch.setattr(notifications.smtplib, "SMTP", FakeSMTP)
        notifier = AssignmentNotifier(host="smtp.example.com", sender="crm@x.com", username="crm", password="s3cret")

        assert await notifier.send_assignment_notice(_notice()) is True
        assert len(FakeSMTP.sent) == 1

    async def test_smtp_failure_swallowed(self, monkeypatch):
        monkeypatch.setattr(notifications.smtplib, "SMTP", BrokenSMTP)
        notifier = AssignmentNotifier(host="smtp.example.com", sender="crm@x.com")

        assert await notifier.send_assignment_notice(_notice()) is False


class TestNotify:

    def test_queues_background_task(self):
        tasks = BackgroundTasks()
        AssignmentNotifier(background_tasks=tasks).notify(_agent(), _lead(), mode="auto")

        assert len(tasks.tasks) == 1
        notice = tasks.tasks[0].args[0]
        assert notice.agent_email == "arjun@travel.example.com"
        assert notice.lead_name == "Ananya Rao"

    def test_agent_without_email(self):
        tasks = BackgroundTasks()
        AssignmentNotifier(background_tasks=tasks).notify(_agent(email=None), _lead())
        assert tasks.tasks == []

    async def test_detached_delivery_outside_request(self, monkeypatch):
        FakeSMTP.sent = []
        monkeypatch.setattr(notifications.smtplib, "SMTP", FakeSMTP)
        notifier = AssignmentNotifier(host="smtp.example.com", sender="crm@x.com", use_tls=False)

        notifier.notify(_agent(), _lead(), assigned_by=_agent(), mode="manual")
        await asyncio.gather(*notifications._pending_deliveries)

        assert len(FakeSMTP.sent) == 1
        assert "manually assigned" in FakeSMTP.sent[0].get_content()
