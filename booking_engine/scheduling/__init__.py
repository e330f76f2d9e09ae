from booking_engine.scheduling.approval_policy import ApprovalDecision, decide_status, evaluate_approval
from booking_engine.scheduling.conflict_detector import ensure_no_conflict, find_conflicts, has_conflict
from booking_engine.scheduling.lifecycle import BookingLifecycle, BookingTrigger, apply_transition
from booking_engine.scheduling.recurring import expand_occurrences, recurring_horizon
from booking_engine.scheduling.schedule_resolver import resolve_day
from booking_engine.scheduling.slot_generator import generate_slots

__all__ = [
    "resolve_day",
    "generate_slots",
    "has_conflict",
    "find_conflicts",
    "ensure_no_conflict",
    "evaluate_approval",
    "decide_status",
    "ApprovalDecision",
    "expand_occurrences",
    "recurring_horizon",
    "BookingLifecycle",
    "BookingTrigger",
    "apply_transition",
]
