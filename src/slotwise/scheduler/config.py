"""Configuration classes for the scheduling engine."""

from pydantic import BaseModel, Field


class ScoringWeights(BaseModel):
    """Weights of the six scoring factors (defaults sum to 100)."""

    task_type_preference: float = Field(default=25, ge=0)
    due_date_proximity: float = Field(default=20, ge=0)
    buffer_availability: float = Field(default=15, ge=0)
    contiguous_time: float = Field(default=15, ge=0)
    priority_alignment: float = Field(default=15, ge=0)
    time_of_day: float = Field(default=10, ge=0)


class EngineConfig(BaseModel):
    """Configuration for candidate generation, filtering and ranking."""

    # Step between candidate start times inside a free block
    slot_interval_minutes: int = Field(default=15, gt=0)
    # Grid used when building availability from busy periods
    availability_interval_minutes: int = Field(default=30, gt=0)
    # Minimum rule partial score (0-100) a candidate needs to be kept
    rule_match_threshold: int = Field(default=33, ge=0, le=100)
    # Suggestions returned for a single-task request
    default_suggestion_count: int = Field(default=5, gt=0)
    # Suggestions considered per task during batch allocation
    batch_suggestion_count: int = Field(default=3, gt=0)
    # Infer task type from content when a task has none
    infer_task_types: bool = True

    weights: ScoringWeights = ScoringWeights()
