"""
Plan scheduling package.

Pure functions that pick the invitee, time window, activity and venue for
each plan in a generation batch.
"""

from .assembler import assemble_plan, commit_rule_expires_at
from .scheduler import iteration_count, select_next_plan
from .venues import choose_venue

__all__ = [
    "assemble_plan",
    "choose_venue",
    "commit_rule_expires_at",
    "iteration_count",
    "select_next_plan",
]
