"""Database models for the trainload backend."""

from trainload.models.base import Base
from trainload.models.athlete import Athlete
from trainload.models.metabolic_profile import MetabolicProfile
from trainload.models.activity import ImportedActivity
from trainload.models.planned_workout import PlannedWorkout, WorkoutType
from trainload.models.fitness_metric import FitnessMetric
from trainload.models.daily_state import DailyStateRecord, GlycogenStatus, RecoveryNeed

__all__ = [
    "Base",
    "Athlete",
    "MetabolicProfile",
    "ImportedActivity",
    "PlannedWorkout",
    "WorkoutType",
    "FitnessMetric",
    "DailyStateRecord",
    "GlycogenStatus",
    "RecoveryNeed",
]
