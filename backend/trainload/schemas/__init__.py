"""Pydantic schemas package for API request/response models."""

from trainload.schemas.activity import (
    ActivityDetailResponse,
    ActivityResponse,
    ActivitySummary,
    ActivityUploadResponse,
    CompactStream,
)
from trainload.schemas.adaptive import (
    AdaptationOutput,
    AdaptiveComputeRequest,
    AdaptiveComputeResponse,
    AthleteDailyState,
    DailyStateResponse,
    FuelingAdaptation,
    NutritionAdaptation,
    RecoveryAdaptation,
    TrainingAdaptation,
)
from trainload.schemas.athlete import (
    AthleteCreate,
    AthleteResponse,
    MetabolicProfileResponse,
    MetabolicProfileUpsert,
    PlannedWorkoutCreate,
    PlannedWorkoutResponse,
)
from trainload.schemas.metrics import (
    ChronicleResponse,
    ChronicleSummary,
    DayLoadResponse,
    FitnessMetricResponse,
    MetricsCalculateResponse,
)

__all__ = [
    # Activity schemas
    "ActivityDetailResponse",
    "ActivityResponse",
    "ActivitySummary",
    "ActivityUploadResponse",
    "CompactStream",
    # Adaptive engine schemas
    "AdaptationOutput",
    "AdaptiveComputeRequest",
    "AdaptiveComputeResponse",
    "AthleteDailyState",
    "DailyStateResponse",
    "FuelingAdaptation",
    "NutritionAdaptation",
    "RecoveryAdaptation",
    "TrainingAdaptation",
    # Athlete schemas
    "AthleteCreate",
    "AthleteResponse",
    "MetabolicProfileResponse",
    "MetabolicProfileUpsert",
    "PlannedWorkoutCreate",
    "PlannedWorkoutResponse",
    # Chronicle schemas
    "ChronicleResponse",
    "ChronicleSummary",
    "DayLoadResponse",
    "FitnessMetricResponse",
    "MetricsCalculateResponse",
]
