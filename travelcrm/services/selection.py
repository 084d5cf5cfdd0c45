"""
Selection strategies.

Both are pure functions over an already-filtered, stably ordered candidate
list. Any I/O (cursor advance, workload counts) happens in the caller.
"""
from typing import Mapping, Optional, Sequence
from uuid import UUID

from travelcrm.models.agent import Agent

ROTATING = "rotating"
LOAD_AWARE = "load_aware"


def pick_rotating(candidates: Sequence[Agent], cursor: int) -> Optional[Agent]:
    """
    Round-robin pick. `cursor` is the ever-increasing counter value claimed
    for this call; the index is re-derived against the current list size.
    """
    if not candidates:
        return None
    return candidates[cursor % len(candidates)]


def pick_load_aware(
    candidates: Sequence[Agent],
    open_counts: Mapping[UUID, int],
    capacity_ceiling: int,
) -> Optional[Agent]:
    """
    Agent with the fewest open leads, skipping anyone at or over the ceiling.
    Ties go to the earliest candidate in list order.
    """
    best = None
    best_count = None
    for agent in candidates:
        count = open_counts.get(agent.agent_id, 0)
        if count >= capacity_ceiling:
            continue
        if best_count is None or count < best_count:
            best, best_count = agent, count
    return best
