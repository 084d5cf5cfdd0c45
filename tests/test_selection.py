"""Tests for the rotating and load-aware selection strategies."""

from collections import Counter
from uuid import uuid4

from travelcrm.models import Agent
from travelcrm.services.selection import pick_load_aware, pick_rotating


def _agents(*names):
    return [Agent(agent_id=uuid4(), full_name=name, email=f"{name}@x.com") for name in names]


class TestPickRotating:
    """Tests for pick_rotating."""

    def test_empty_candidates(self):
        """No candidates means no pick."""
        assert pick_rotating([], 7) is None

    def test_cursor_wraps(self):
        """The cursor is reduced modulo the candidate count."""
        a, b, c = _agents("a", "b", "c")
        picks = [pick_rotating([a, b, c], cursor) for cursor in range(5)]
        assert picks == [a, b, c, a, b]

    def test_large_cursor(self):
        """The stored cursor is unbounded; only its remainder matters."""
        a, b, c = _agents("a", "b", "c")
        assert pick_rotating([a, b, c], 3 * 1000 + 2) is c

    def test_even_spread_over_stable_set(self):
        """Each candidate gets floor(N/k) or ceil(N/k) picks."""
        candidates = _agents("a", "b", "c", "d")
        picks = Counter(pick_rotating(candidates, cursor).agent_id for cursor in range(0, 4 * 5 + 3))
        assert sorted(picks.values()) == [5, 6, 6, 6]


class TestPickLoadAware:
    """Tests for pick_load_aware."""

    def test_least_loaded_wins(self):
        """The agent with the fewest open leads is chosen."""
        a, b, c = _agents("a", "b", "c")
        counts = {a.agent_id: 2, b.agent_id: 0, c.agent_id: 1}
        assert pick_load_aware([a, b, c], counts, capacity_ceiling=2) is b

    def test_missing_count_is_zero(self):
        """Agents absent from the counts have no open leads."""
        a, b = _agents("a", "b")
        assert pick_load_aware([a, b], {a.agent_id: 3}, capacity_ceiling=10) is b

    def test_tie_goes_to_first(self):
        """Equal counts resolve to the earlier candidate."""
        a, b, c = _agents("a", "b", "c")
        counts = {a.agent_id: 4, b.agent_id: 1, c.agent_id: 1}
        assert pick_load_aware([a, b, c], counts, capacity_ceiling=10) is b

    def test_ceiling_excludes(self):
        """An agent at the ceiling is skipped even if least loaded."""
        a, b = _agents("a", "b")
        counts = {a.agent_id: 3, b.agent_id: 5}
        assert pick_load_aware([a, b], counts, capacity_ceiling=3) is None

    def test_all_at_ceiling(self):
        """Nobody below the ceiling means no pick."""
        a, b = _agents("a", "b")
        counts = {a.agent_id: 2, b.agent_id: 2}
        assert pick_load_aware([a, b], counts, capacity_ceiling=2) is None

    def test_empty_candidates(self):
        assert pick_load_aware([], {}, capacity_ceiling=100) is None
