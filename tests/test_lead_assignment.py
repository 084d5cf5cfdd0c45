"""Tests for LeadAssignmentManager, the auto-assignment executor."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from travelcrm.models import AssignmentPolicy, Lead
from travelcrm.services.lead_assignment import LeadAssignmentManager


def _draft(**fields):
    return Lead(lead_id=uuid4(), name="Rohan Mehta", status="new", assignment_mode="manual", **fields)


async def _cursor(db):
    return await db.scalar(select(AssignmentPolicy.rotation_cursor))


class TestRotating:
    """Round-robin assignment over the eligible agents."""

    async def test_cycles_through_agents(self, db, make_agent, set_policy):
        a = await make_agent("Arjun")
        b = await make_agent("Divya")
        c = await make_agent("Kabir")
        await set_policy(mode="auto", strategy="rotating", rotation_cursor=0)
        manager = LeadAssignmentManager(db)

        owners, cursors = [], []
        for _ in range(4):
            draft = _draft()
            result = await manager.assign_if_needed(draft)
            await db.commit()
            assert result.assigned
            owners.append(draft.assigned_to)
            cursors.append(await _cursor(db))

        assert owners == [a.agent_id, b.agent_id, c.agent_id, a.agent_id]
        assert cursors == [1, 2, 3, 4]

    async def test_stamps_draft(self, db, make_agent, set_policy):
        agent = await make_agent("Arjun")
        await set_policy(mode="auto")
        draft = _draft()

        result = await LeadAssignmentManager(db).assign_if_needed(draft)

        assert result.agent.agent_id == agent.agent_id
        assert draft.assigned_to == agent.agent_id
        assert draft.assignment_mode == "auto"
        assert draft.assigned_by is None
        assert draft.sales_rep_name == "Arjun"

    async def test_cursor_reindexed_when_pool_shrinks(self, db, make_agent, set_policy):
        """The stored cursor is reduced against the current list, whatever its size."""
        a = await make_agent("Arjun")
        b = await make_agent("Divya")
        await set_policy(mode="auto", rotation_cursor=7, allow_list=[a.agent_id, b.agent_id])
        draft = _draft()

        await LeadAssignmentManager(db).assign_if_needed(draft)

        assert draft.assigned_to == b.agent_id


class TestLoadAware:
    """Least-loaded assignment with a capacity ceiling."""

    async def test_picks_least_loaded_below_ceiling(self, db, make_agent, make_lead, set_policy):
        a = await make_agent("Arjun")
        b = await make_agent("Divya")
        c = await make_agent("Kabir")
        await make_lead(assigned_to=a.agent_id)
        await make_lead(assigned_to=a.agent_id)
        await make_lead(assigned_to=c.agent_id)
        await set_policy(mode="auto", strategy="load_aware", capacity_ceiling=2)
        draft = _draft()

        result = await LeadAssignmentManager(db).assign_if_needed(draft)

        assert result.assigned
        assert draft.assigned_to == b.agent_id

    async def test_closed_leads_not_counted(self, db, make_agent, make_lead, set_policy):
        a = await make_agent("Arjun")
        b = await make_agent("Divya")
        for status in ("converted", "lost", "not-interested"):
            await make_lead(assigned_to=a.agent_id, status=status)
        await make_lead(assigned_to=b.agent_id, status="contacted")
        await set_policy(mode="auto", strategy="load_aware")
        draft = _draft()

        await LeadAssignmentManager(db).assign_if_needed(draft)

        assert draft.assigned_to == a.agent_id

    async def test_everyone_at_ceiling(self, db, make_agent, make_lead, set_policy):
        a = await make_agent("Arjun")
        await make_lead(assigned_to=a.agent_id)
        await set_policy(mode="auto", strategy="load_aware", capacity_ceiling=1)
        draft = _draft()

        result = await LeadAssignmentManager(db).assign_if_needed(draft)

        assert not result.assigned
        assert draft.assigned_to is None

    async def test_cursor_untouched(self, db, make_agent, set_policy):
        await make_agent("Arjun")
        await set_policy(mode="auto", strategy="load_aware", rotation_cursor=3)

        await LeadAssignmentManager(db).assign_if_needed(_draft())
        await db.commit()

        assert await _cursor(db) == 3


class TestNoAssignment:
    """Cases where the draft is left alone."""

    async def test_manual_mode(self, db, make_agent, set_policy):
        await make_agent("Arjun")
        await set_policy(mode="manual")
        draft = _draft()

        result = await LeadAssignmentManager(db).assign_if_needed(draft)
        await db.commit()

        assert not result.assigned
        assert draft.assigned_to is None
        assert await _cursor(db) == 0

    async def test_explicit_owner_kept(self, db, make_agent, set_policy):
        a = await make_agent("Arjun")
        b = await make_agent("Divya")
        await set_policy(mode="auto")
        draft = _draft(assigned_to=b.agent_id)

        result = await LeadAssignmentManager(db).assign_if_needed(draft)

        assert not result.assigned
        assert draft.assigned_to == b.agent_id
        assert draft.assigned_to != a.agent_id

    async def test_nobody_eligible_repeatedly(self, db, make_agent, set_policy):
        """An empty pool is a normal outcome and does not advance the cursor."""
        await make_agent("Arjun", is_active=False)
        await set_policy(mode="auto", strategy="rotating", rotation_cursor=2)
        manager = LeadAssignmentManager(db)

        for _ in range(3):
            result = await manager.assign_if_needed(_draft())
            await db.commit()
            assert not result.assigned

        assert await _cursor(db) == 2

    async def test_unknown_strategy(self, db, make_agent):
        await make_agent("Arjun")
        policy = AssignmentPolicy(mode="auto", strategy="weighted", allow_list=[], capacity_ceiling=100,
                                  skip_inactive=True, require_recent_activity=False)

        with pytest.raises(ValueError):
            await LeadAssignmentManager(db).assign_if_needed(_draft(), policy)


class TestNotifyAssignment:

    async def test_forwards_to_notifier(self, db, make_agent, notifier):
        agent = await make_agent("Arjun")
        lead = _draft()

        LeadAssignmentManager(db, notifier).notify_assignment(agent, lead)

        assert notifier.calls == [
            {"agent_id": agent.agent_id, "lead_id": lead.lead_id, "assigned_by": None, "mode": "auto"}
        ]

    async def test_without_notifier(self, db, make_agent):
        agent = await make_agent("Arjun")
        LeadAssignmentManager(db).notify_assignment(agent, _draft())


class TestAssignOrLeaveUnassigned:

    async def test_strategy_error_leaves_draft_unassigned(self, db, make_agent, set_policy, monkeypatch):
        await make_agent("Arjun")
        await set_policy(mode="auto")
        manager = LeadAssignmentManager(db)

        async def misconfigured(policy):
            raise ValueError("Unknown assignment strategy 'weighted'")

        monkeypatch.setattr(manager, "find_best_agent", misconfigured)
        draft = _draft()

        result = await manager.assign_or_leave_unassigned(draft)

        assert not result.assigned
        assert draft.assigned_to is None
