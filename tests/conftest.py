"""Shared fixtures: a throwaway SQLite database per test plus collaborator doubles."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

import travelcrm.models  # noqa: F401  registers every table on Base.metadata
from travelcrm.auth import Actor
from travelcrm.crud import assignment_policy as crud_policy
from travelcrm.crud import lead as crud_lead
from travelcrm.db.base_class import Base
from travelcrm.models import Agent, Lead

BASE_TIME = datetime(2026, 1, 5, 9, 0, 0)


class RecordingNotifier:
    """Stands in for AssignmentNotifier and remembers every notify call."""

    def __init__(self):
        self.calls = []

    def notify(self, agent, lead, assigned_by=None, mode="auto"):
        self.calls.append(
            {
                "agent_id": agent.agent_id,
                "lead_id": lead.lead_id,
                "assigned_by": assigned_by.agent_id if assigned_by else None,
                "mode": mode,
            }
        )


class FakeRedis:
    """The two Redis commands the inquiry flow uses, backed by a dict."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex
        return True


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'travelcrm.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fake_redis():
    return FakeRedis()


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_agent(db):
    """Create and commit an agent. Creation times increase with each call."""
    created = []

    async def _make(name, role="sales_rep", is_active=True, last_login=None):
        agent = Agent(
            agent_id=uuid4(),
            full_name=name,
            email=f"{name.lower()}@travel.example.com",
            role=role,
            is_active=is_active,
            last_login=last_login,
            created_at=BASE_TIME + timedelta(minutes=len(created)),
        )
        db.add(agent)
        await db.commit()
        created.append(agent)
        return agent

    return _make


@pytest.fixture
def set_policy(db):
    """Create the policy row if needed and apply the given field values."""

    async def _set(**fields):
        policy = await crud_policy.get_or_create_policy(db)
        await crud_policy.update_policy(db, policy, fields)
        await db.commit()
        return policy

    return _set


@pytest.fixture
def make_lead(db):
    """Persist a lead with its seed history entry."""

    async def _make(assigned_to=None, status="new", name="Priya Nair"):
        lead = Lead(
            lead_id=uuid4(),
            name=name,
            email="priya@example.com",
            phone="+919812345678",
            destination="Bali",
            status=status,
            assigned_to=assigned_to,
            assignment_mode="manual",
        )
        await crud_lead.create_lead(db, lead)
        await crud_lead.append_status_history(db, lead.lead_id, status, notes="Initial status")
        await db.commit()
        return lead

    return _make


@pytest.fixture
async def admin(make_agent):
    agent = await make_agent("Meera", role="admin")
    return Actor(actor_id=agent.agent_id, role="admin")


@pytest.fixture
def as_actor():
    def _as_actor(agent):
        return Actor(actor_id=agent.agent_id, role=agent.role)

    return _as_actor
