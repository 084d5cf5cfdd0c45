from .agent import Agent
from .assignment_policy import AssignmentPolicy
from .lead import Lead
from .lead_status_history import LeadStatusHistory
from .lead_assignment import LeadAssignment
from .booking import Booking

__all__ = ["Agent", "AssignmentPolicy", "Lead", "LeadStatusHistory", "LeadAssignment", "Booking"]
