"""Scheduler package - task-to-calendar slot finding.

This package provides:
- Candidate slot generation over availability windows
- Per-task-type rules and protected ("do not schedule") time
- Six-factor weighted scoring with readable reasoning
- Conflict detection and priority-based displacement
- Batch allocation against a shrinking availability model

Main entry points:
- SchedulingService: High-level service holding one user's configuration
- SchedulingEngine: Ranked suggestions for a single task
- schedule_batch: Place several tasks in priority order

Configuration:
- EngineConfig: Candidate step, rule threshold, suggestion counts
- ScoringWeights: Weights of the six scoring factors
"""

# Availability
from .availability import build_availability, calculate_availability, merge_busy_periods

# Batch allocation
from .batch import (
    BatchScheduleOptions,
    SufficiencyResult,
    check_availability_sufficiency,
    estimate_batch_duration,
    mark_slot_as_used,
    schedule_batch,
    sort_tasks_by_priority,
    validate_batch_options,
)

# Configuration
from .config import EngineConfig, ScoringWeights

# Conflicts
from .conflicts import (
    BestSlot,
    ConflictCheckResult,
    can_displace_by_priority,
    can_displace_existing,
    check_conflicts,
    compare_priorities,
    find_best_slot,
    find_conflicts,
    is_within_working_hours,
)

# Core dataclasses
from .core import (
    AvailabilityWindow,
    BatchConflict,
    BatchScheduledTask,
    BatchScheduleResult,
    BatchSummary,
    Conflict,
    ConflictType,
    Displacement,
    EffectiveRule,
    SchedulingSuggestion,
    ScoringFactor,
    ScoringResult,
    Severity,
    TimeSlot,
    UnschedulableTask,
    ValidationResult,
)

# Single-task engine
from .engine import SchedulingContext, SchedulingEngine

# Event payloads
from .events import build_buffer_event, build_events, build_task_event

# Protected time
from .protected import (
    ProtectedCheckResult,
    ProtectedTimeInstance,
    can_override,
    default_protected_slots,
    expand_protected_times,
    is_protected,
    is_urgent,
)

# Rules
from .rules import effective_rule, infer_task_type, satisfies_rule

# Scoring
from .scoring import ScoringContext, calculate_total_score, generate_reasoning, score_slot

# High-level service
from .service import SchedulingService

# Time helpers
from .timeutils import parse_time, slots_overlap

__all__ = [
    # Core dataclasses
    "TimeSlot",
    "AvailabilityWindow",
    "ScoringFactor",
    "ScoringResult",
    "Conflict",
    "ConflictType",
    "Severity",
    "Displacement",
    "SchedulingSuggestion",
    "EffectiveRule",
    "BatchScheduledTask",
    "BatchConflict",
    "UnschedulableTask",
    "BatchSummary",
    "BatchScheduleResult",
    "ValidationResult",
    # Configuration
    "EngineConfig",
    "ScoringWeights",
    # High-level service
    "SchedulingService",
    # Single-task engine
    "SchedulingContext",
    "SchedulingEngine",
    # Batch allocation
    "BatchScheduleOptions",
    "SufficiencyResult",
    "schedule_batch",
    "sort_tasks_by_priority",
    "mark_slot_as_used",
    "validate_batch_options",
    "estimate_batch_duration",
    "check_availability_sufficiency",
    # Scoring
    "ScoringContext",
    "score_slot",
    "calculate_total_score",
    "generate_reasoning",
    # Rules
    "effective_rule",
    "infer_task_type",
    "satisfies_rule",
    # Protected time
    "ProtectedCheckResult",
    "ProtectedTimeInstance",
    "is_protected",
    "can_override",
    "is_urgent",
    "expand_protected_times",
    "default_protected_slots",
    # Conflicts
    "BestSlot",
    "ConflictCheckResult",
    "compare_priorities",
    "can_displace_by_priority",
    "can_displace_existing",
    "check_conflicts",
    "find_conflicts",
    "find_best_slot",
    "is_within_working_hours",
    # Availability
    "merge_busy_periods",
    "calculate_availability",
    "build_availability",
    # Event payloads
    "build_task_event",
    "build_buffer_event",
    "build_events",
    # Time helpers
    "parse_time",
    "slots_overlap",
]
