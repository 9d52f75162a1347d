"""
Adaptive daily-state engine.

Turns the last days of planned-versus-actual deltas and a baseline metabolic
profile into a per-date athlete state (fatigue, glycogen, recovery need,
energy target, training capacity) and four adaptation blocks:
nutrition, fueling, training and recovery.

Every run recomputes everything from its inputs; no adaptation state is
carried between runs.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional, Sequence

from trainload.config import Settings, settings
from trainload.models.athlete import Athlete
from trainload.models.daily_state import GlycogenStatus, RecoveryNeed
from trainload.models.metabolic_profile import MetabolicProfile
from trainload.schemas.adaptive import (
    AdaptationOutput,
    AthleteDailyState,
    FuelingAdaptation,
    NutritionAdaptation,
    RecoveryAdaptation,
    TrainingAdaptation,
)
from trainload.services.delta_service import (
    ActivityDelta,
    ActualActivity,
    MatchingPolicy,
    PlannedSession,
    WeeklySummary,
    calculate_deltas,
    calculate_weekly_summary,
    zone_intensity,
)

logger = logging.getLogger(__name__)

# Baseline macro split (CHO/PRO/FAT percent of daily kcal)
BASE_CHO_PERCENT = 55
BASE_PRO_PERCENT = 20
BASE_FAT_PERCENT = 25

# kcal per gram
KCAL_PER_G_CHO = 4
KCAL_PER_G_PRO = 4
KCAL_PER_G_FAT = 9

# Assumptions used when no workout is planned for the date
DEFAULT_PLANNED_DURATION_MIN = 60
DEFAULT_PLANNED_TSS = 80
DEFAULT_PLANNED_ZONE = "z2"
RECENT_LOAD_DAYS = 3  # glycogen depletion looks back this many days


class MissingBaselineProfileError(Exception):
    """Raised when an athlete has no metabolic profile to base kcal targets on."""

    def __init__(self, athlete_id: int):
        self.athlete_id = athlete_id
        super().__init__(f"Athlete {athlete_id} has no baseline metabolic profile")


@dataclass
class BaselineProfile:
    """Baseline energy expenditure and body weight."""

    bmr: float
    weight_kg: float
    daily_kcal: Optional[float] = None

    # Moderate activity multiplier applied to BMR when no daily estimate exists
    ACTIVITY_MULTIPLIER = 1.5
    DEFAULT_WEIGHT_KG = 70.0

    @property
    def effective_daily_kcal(self) -> float:
        return self.daily_kcal or self.bmr * self.ACTIVITY_MULTIPLIER

    @classmethod
    def from_model(
        cls,
        profile: Optional[MetabolicProfile],
        athlete: Athlete,
    ) -> "BaselineProfile":
        """
        Build the baseline from stored records.

        Raises:
            MissingBaselineProfileError: If the athlete has no metabolic profile
        """
        if profile is None:
            raise MissingBaselineProfileError(athlete.id)
        weight = profile.weight_kg or athlete.weight_kg or cls.DEFAULT_WEIGHT_KG
        return cls(bmr=profile.bmr, weight_kg=weight, daily_kcal=profile.daily_kcal)


@dataclass
class AdaptivePolicy:
    """Thresholds behind the glycogen and recovery rule tables."""

    window_days: int = 7
    fatigue_base: int = 30
    fatigue_accumulated_cap: int = 50
    fatigue_medium: int = 50
    fatigue_high: int = 70
    fatigue_critical: int = 85
    glycogen_max_g: float = 500.0
    glycogen_low_threshold_g: float = 200.0
    glycogen_depleted_threshold_g: float = 100.0
    glycogen_depletion_per_tss: float = 0.5
    glycogen_restore_rate: float = 5.0
    tss_capacity_base: int = 150
    tss_reduction_per_fatigue: float = 1.5
    min_tss_capacity: int = 20

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "AdaptivePolicy":
        return cls(
            window_days=config.ADAPTIVE_WINDOW_DAYS,
            fatigue_base=config.FATIGUE_BASE,
            fatigue_accumulated_cap=config.FATIGUE_ACCUMULATED_CAP,
            fatigue_medium=config.FATIGUE_MEDIUM,
            fatigue_high=config.FATIGUE_HIGH,
            fatigue_critical=config.FATIGUE_CRITICAL,
            glycogen_max_g=config.GLYCOGEN_MAX_G,
            glycogen_low_threshold_g=config.GLYCOGEN_LOW_THRESHOLD_G,
            glycogen_depleted_threshold_g=config.GLYCOGEN_DEPLETED_THRESHOLD_G,
            glycogen_depletion_per_tss=config.GLYCOGEN_DEPLETION_PER_TSS,
            glycogen_restore_rate=config.GLYCOGEN_RESTORE_RATE,
            tss_capacity_base=config.TSS_CAPACITY_BASE,
            tss_reduction_per_fatigue=config.TSS_REDUCTION_PER_FATIGUE,
        )


@dataclass
class AdaptiveResult:
    """Everything one engine run produces."""

    state: AthleteDailyState
    adaptations: AdaptationOutput
    deltas: list[ActivityDelta] = field(default_factory=list)
    weekly_summary: WeeklySummary = field(default_factory=WeeklySummary)


def default_planned_session(target_date: date) -> PlannedSession:
    """Generic session assumed when nothing is planned for the date."""
    return PlannedSession(
        date=target_date,
        workout_type="endurance",
        duration_minutes=DEFAULT_PLANNED_DURATION_MIN,
        target_tss=DEFAULT_PLANNED_TSS,
        target_zone=DEFAULT_PLANNED_ZONE,
    )


class AdaptiveEngine:
    """Compute daily athlete state and the adaptations that follow from it."""

    def __init__(
        self,
        policy: Optional[AdaptivePolicy] = None,
        matching: Optional[MatchingPolicy] = None,
    ):
        self.policy = policy or AdaptivePolicy.from_settings()
        self.matching = matching or MatchingPolicy()

    # ------------------------------------------------------------------
    # State classification
    # ------------------------------------------------------------------

    def calculate_fatigue_score(self, weekly: WeeklySummary) -> int:
        accumulated = min(self.policy.fatigue_accumulated_cap, weekly.cumulative_fatigue)
        return max(0, min(100, self.policy.fatigue_base + accumulated))

    def calculate_glycogen(
        self,
        recent_deltas: Sequence[ActivityDelta],
        hours_recovery: float,
        cho_intake_g: float,
    ) -> tuple[GlycogenStatus, int]:
        """
        Estimate glycogen from recent load, recovery time and CHO intake.

        Starts from a full store, depletes per TSS of the recent activities,
        restores per recovery hour and with 80% of the CHO intake.
        """
        policy = self.policy
        glycogen = policy.glycogen_max_g
        glycogen -= sum(d.actual_tss for d in recent_deltas) * policy.glycogen_depletion_per_tss
        glycogen += hours_recovery * policy.glycogen_restore_rate
        glycogen += cho_intake_g * 0.8
        glycogen = max(0.0, min(policy.glycogen_max_g, glycogen))

        if glycogen < policy.glycogen_depleted_threshold_g:
            status = GlycogenStatus.DEPLETED
        elif glycogen < policy.glycogen_low_threshold_g:
            status = GlycogenStatus.LOW
        else:
            status = GlycogenStatus.NORMAL
        return status, int(round(glycogen))

    def calculate_recovery_need(self, fatigue_score: float, delta_tss_yesterday: float) -> RecoveryNeed:
        load_factor = 20 if delta_tss_yesterday > 30 else 10 if delta_tss_yesterday > 0 else 0
        effective = fatigue_score + load_factor

        if effective >= self.policy.fatigue_critical:
            return RecoveryNeed.CRITICAL
        if effective >= self.policy.fatigue_high:
            return RecoveryNeed.HIGH
        if effective >= self.policy.fatigue_medium:
            return RecoveryNeed.MEDIUM
        return RecoveryNeed.LOW

    def calculate_tss_capacity(self, fatigue_score: float) -> int:
        reduction = fatigue_score * self.policy.tss_reduction_per_fatigue
        return max(self.policy.min_tss_capacity, int(round(self.policy.tss_capacity_base - reduction)))

    @staticmethod
    def calculate_zones(
        recovery_need: RecoveryNeed,
        glycogen_status: GlycogenStatus,
        planned_zone: str,
    ) -> tuple[str, str]:
        """Return (recommended zone, max zone) for the day."""
        if recovery_need == RecoveryNeed.CRITICAL:
            return "z1", "z1"
        if recovery_need == RecoveryNeed.HIGH or glycogen_status == GlycogenStatus.DEPLETED:
            return "z2", "z2"
        if recovery_need == RecoveryNeed.MEDIUM or glycogen_status == GlycogenStatus.LOW:
            return "z2", "z3"
        return planned_zone, "z5"

    @staticmethod
    def calculate_caloric_adjustments(
        base_kcal: float,
        delta_tss: float,
        delta_kcal: float,
        glycogen_status: GlycogenStatus,
        recovery_need: RecoveryNeed,
    ) -> dict:
        adjustment = 0.0
        cho_adjust = 0
        pro_adjust = 0

        # Recover half of the energy debt, at most 400 kcal
        if delta_kcal > 200:
            adjustment += min(400, delta_kcal * 0.5)

        if glycogen_status == GlycogenStatus.DEPLETED:
            cho_adjust = 15
            adjustment += 200
        elif glycogen_status == GlycogenStatus.LOW:
            cho_adjust = 10
            adjustment += 100

        if recovery_need in (RecoveryNeed.HIGH, RecoveryNeed.CRITICAL):
            pro_adjust = 10
            adjustment += 150

        # ~3 kcal per TSS over plan
        if delta_tss > 30:
            adjustment += delta_tss * 3

        return {
            "target": int(round(base_kcal + adjustment)),
            "adjustment": int(round(adjustment)),
            "cho": cho_adjust,
            "pro": pro_adjust,
            "fat": -cho_adjust - pro_adjust,
        }

    def adaptation_reasons(
        self,
        fatigue_score: int,
        glycogen_status: GlycogenStatus,
        recovery_need: RecoveryNeed,
        kcal_adjustment: int,
    ) -> list[str]:
        reasons = []
        if fatigue_score > self.policy.fatigue_high:
            reasons.append(f"High fatigue ({fatigue_score}/100): reduce training load")
        if glycogen_status == GlycogenStatus.DEPLETED:
            reasons.append("Glycogen depleted: restore stores with extra carbohydrate")
        elif glycogen_status == GlycogenStatus.LOW:
            reasons.append("Glycogen low: increase carbohydrate intake")
        if recovery_need == RecoveryNeed.CRITICAL:
            reasons.append("Critical recovery need: regenerative activity only")
        elif recovery_need == RecoveryNeed.HIGH:
            reasons.append("High recovery need: limit intensity")
        if kcal_adjustment > 200:
            reasons.append(f"Energy deficit to compensate (+{kcal_adjustment} kcal)")
        return reasons

    def compute_daily_state(
        self,
        athlete_id: int,
        target_date: date,
        deltas: Sequence[ActivityDelta],
        profile: BaselineProfile,
        planned: PlannedSession,
    ) -> AthleteDailyState:
        """
        Classify the athlete's state for a date.

        Args:
            athlete_id: Athlete ID
            target_date: Date the state applies to
            deltas: Activity deltas of the window, ordered by date. All of
                yesterday's activities feed the recovery need and the
                activities since three days before the target date feed the
                glycogen estimate.
            profile: Baseline metabolic profile
            planned: Session planned for the date

        Returns:
            AthleteDailyState
        """
        yesterday = target_date - timedelta(days=1)
        yesterday_deltas = [d for d in deltas if d.delta_date == yesterday]
        recent_deltas = [d for d in deltas if d.delta_date >= target_date - timedelta(days=RECENT_LOAD_DAYS)]
        weekly = calculate_weekly_summary(deltas)

        fatigue_score = self.calculate_fatigue_score(weekly)

        # Assume a shorter recovery window after training yesterday
        hours_recovery = 12 if yesterday_deltas else 24
        daily_kcal = profile.effective_daily_kcal
        cho_intake = daily_kcal * 0.5 / KCAL_PER_G_CHO
        glycogen_status, glycogen_level = self.calculate_glycogen(
            recent_deltas, hours_recovery, cho_intake
        )

        yesterday_delta_tss = sum(d.delta_tss for d in yesterday_deltas)
        recovery_need = self.calculate_recovery_need(fatigue_score, yesterday_delta_tss)

        tss_capacity = self.calculate_tss_capacity(fatigue_score)
        tss_adjustment = int(round(tss_capacity / max(planned.target_tss, 50) * 100))

        recommended, max_zone = self.calculate_zones(
            recovery_need, glycogen_status, planned.target_zone or DEFAULT_PLANNED_ZONE
        )

        caloric = self.calculate_caloric_adjustments(
            daily_kcal,
            weekly.total_delta_tss,
            weekly.total_delta_kcal,
            glycogen_status,
            recovery_need,
        )

        return AthleteDailyState(
            athlete_id=athlete_id,
            state_date=target_date,
            fatigue_score=fatigue_score,
            recovery_need=recovery_need,
            glycogen_status=glycogen_status,
            glycogen_level_g=glycogen_level,
            hydration_status="normal",
            kcal_target=caloric["target"],
            kcal_adjustment=caloric["adjustment"],
            kcal_debt=int(round(weekly.total_delta_kcal)),
            cho_ratio_adjustment=caloric["cho"],
            pro_ratio_adjustment=caloric["pro"],
            fat_ratio_adjustment=caloric["fat"],
            tss_capacity=tss_capacity,
            tss_adjustment_percent=min(120, max(50, tss_adjustment)),
            recommended_zone=recommended,
            max_zone_today=max_zone,
            adaptation_reasons=self.adaptation_reasons(
                fatigue_score, glycogen_status, recovery_need, caloric["adjustment"]
            ),
            factors={
                "weekly_summary": weekly.to_dict(),
                "glycogen_level": glycogen_level,
                "hours_recovery": hours_recovery,
                "yesterday_deltas": [d.to_dict() for d in yesterday_deltas],
            },
        )

    # ------------------------------------------------------------------
    # Adaptations
    # ------------------------------------------------------------------

    @staticmethod
    def generate_nutrition(state: AthleteDailyState, profile: BaselineProfile) -> NutritionAdaptation:
        notes = []

        cho = BASE_CHO_PERCENT + state.cho_ratio_adjustment
        pro = BASE_PRO_PERCENT + state.pro_ratio_adjustment
        fat = BASE_FAT_PERCENT + state.fat_ratio_adjustment

        # Renormalize; fat absorbs the rounding so the split sums to 100
        total = cho + pro + fat
        cho_percent = int(round(cho / total * 100))
        pro_percent = int(round(pro / total * 100))
        fat_percent = 100 - cho_percent - pro_percent

        daily_kcal = state.kcal_target
        hydration = profile.weight_kg * 0.035
        if state.glycogen_status in (GlycogenStatus.DEPLETED, GlycogenStatus.LOW):
            hydration += 0.5
            notes.append("Increase fluids to support glycogen restoration")

        if state.kcal_adjustment > 200:
            notes.append(f"Energy deficit compensation: +{state.kcal_adjustment} kcal")
        if state.cho_ratio_adjustment > 5:
            notes.append("Carbohydrate priority to restore stores")
        if state.pro_ratio_adjustment > 5:
            notes.append("Protein increased for muscle recovery")

        return NutritionAdaptation(
            daily_kcal=daily_kcal,
            kcal_adjustment=state.kcal_adjustment,
            cho_percent=cho_percent,
            pro_percent=pro_percent,
            fat_percent=fat_percent,
            cho_grams=int(round(daily_kcal * cho_percent / 100 / KCAL_PER_G_CHO)),
            pro_grams=int(round(daily_kcal * pro_percent / 100 / KCAL_PER_G_PRO)),
            fat_grams=int(round(daily_kcal * fat_percent / 100 / KCAL_PER_G_FAT)),
            hydration_liters=round(hydration, 1),
            notes=notes,
        )

    @staticmethod
    def generate_fueling(state: AthleteDailyState, planned: PlannedSession) -> FuelingAdaptation:
        notes = []
        duration = planned.duration_minutes or DEFAULT_PLANNED_DURATION_MIN
        zone = planned.target_zone or state.recommended_zone

        pre_cho = 30
        if state.glycogen_status == GlycogenStatus.DEPLETED:
            pre_cho = 60
            notes.append("Glycogen depleted: increase pre-workout carbohydrate")
        elif state.glycogen_status == GlycogenStatus.LOW:
            pre_cho = 45

        intra_cho = 30
        if duration > 90:
            intra_cho = 60
            if zone_intensity(zone) >= 4:
                intra_cho = 90
                notes.append("Long high-intensity session: maximize intra-workout carbohydrate")

        post_cho = 50
        post_pro = 25
        if state.recovery_need in (RecoveryNeed.HIGH, RecoveryNeed.CRITICAL):
            post_cho = 80
            post_pro = 35
            notes.append("Recovery priority: post-workout window matters")

        caffeine = 100
        if state.fatigue_score > 70:
            caffeine = 0
            notes.append("High fatigue: skip caffeine to support recovery")

        return FuelingAdaptation(
            pre_workout_cho_g=pre_cho,
            intra_workout_cho_g_per_hour=intra_cho,
            post_workout_cho_g=post_cho,
            post_workout_pro_g=post_pro,
            caffeine_mg=caffeine,
            electrolytes_needed=duration > 60 or state.hydration_status != "optimal",
            notes=notes,
        )

    @staticmethod
    def generate_training(state: AthleteDailyState, planned: PlannedSession) -> TrainingAdaptation:
        notes = []
        planned_tss = planned.target_tss or DEFAULT_PLANNED_TSS
        planned_duration = planned.duration_minutes or DEFAULT_PLANNED_DURATION_MIN

        max_duration = planned_duration
        if state.recovery_need == RecoveryNeed.CRITICAL:
            max_duration = 45
            notes.append("Critical recovery need: cap duration at 45 min")
        elif state.recovery_need == RecoveryNeed.HIGH:
            max_duration = min(planned_duration, 90)
            notes.append("High recovery need: cap duration at 90 min")

        intensity_cap = 1.0
        if state.recovery_need == RecoveryNeed.CRITICAL:
            intensity_cap = 0.6
        elif state.recovery_need == RecoveryNeed.HIGH:
            intensity_cap = 0.75
        elif state.glycogen_status == GlycogenStatus.DEPLETED:
            intensity_cap = 0.7
            notes.append("Glycogen depleted: limit intensity")

        suggested_type = planned.workout_type or "endurance"
        if state.recovery_need == RecoveryNeed.CRITICAL:
            suggested_type = "recovery"
            notes.append("Suggested: active recovery or full rest")
        elif state.recovery_need == RecoveryNeed.HIGH:
            suggested_type = "endurance"
            notes.append("Suggested: light aerobic session")

        if state.max_zone_today != state.recommended_zone:
            notes.append(
                f"Max zone today: {state.max_zone_today} (recommended: {state.recommended_zone})"
            )

        return TrainingAdaptation(
            tss_target=min(planned_tss, state.tss_capacity),
            tss_adjustment_percent=state.tss_adjustment_percent,
            max_zone=state.max_zone_today,
            recommended_zone=state.recommended_zone,
            max_duration_min=max_duration,
            intensity_cap=intensity_cap,
            suggested_workout_type=suggested_type,
            notes=notes,
        )

    @staticmethod
    def generate_recovery(state: AthleteDailyState) -> RecoveryAdaptation:
        notes = []

        sleep_target = 7.5
        if state.recovery_need == RecoveryNeed.CRITICAL:
            sleep_target = 9.0
            notes.append("Top priority: quality sleep")
        elif state.recovery_need == RecoveryNeed.HIGH:
            sleep_target = 8.5
            notes.append("Increase sleep hours")

        stretching = 10
        if state.recovery_need in (RecoveryNeed.HIGH, RecoveryNeed.CRITICAL):
            stretching = 20
            notes.append("Extended stretching recommended")

        cold_therapy = state.fatigue_score > 70
        if cold_therapy:
            notes.append("Cold therapy can speed up recovery")

        return RecoveryAdaptation(
            recovery_priority=state.recovery_need,
            sleep_target_hours=sleep_target,
            active_recovery_recommended=(
                state.recovery_need != RecoveryNeed.CRITICAL and state.fatigue_score < 80
            ),
            stretching_minutes=stretching,
            foam_rolling_recommended=state.fatigue_score > 50,
            cold_therapy_recommended=cold_therapy,
            notes=notes,
        )

    def generate_adaptations(
        self,
        state: AthleteDailyState,
        profile: BaselineProfile,
        planned: PlannedSession,
    ) -> AdaptationOutput:
        return AdaptationOutput(
            nutrition=self.generate_nutrition(state, profile),
            fueling=self.generate_fueling(state, planned),
            training=self.generate_training(state, planned),
            recovery=self.generate_recovery(state),
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def compute(
        self,
        athlete_id: int,
        target_date: date,
        activities: Sequence[ActualActivity],
        planned_workout: Optional[PlannedSession],
        baseline_profile: Optional[BaselineProfile],
        planned_sessions: Optional[Sequence[PlannedSession]] = None,
    ) -> AdaptiveResult:
        """
        Run the engine for one athlete and date.

        Args:
            athlete_id: Athlete ID
            target_date: Date to compute the state for
            activities: Completed activities; only the window ending on
                target_date is used
            planned_workout: Session planned for target_date, if any
            baseline_profile: Baseline metabolic profile
            planned_sessions: Planned sessions of the window, used to match
                activities (defaults to planned_workout alone)

        Returns:
            AdaptiveResult with state, adaptations and the deltas behind them

        Raises:
            MissingBaselineProfileError: If baseline_profile is None
        """
        if baseline_profile is None:
            raise MissingBaselineProfileError(athlete_id)

        window_start = target_date - timedelta(days=self.policy.window_days)
        window = [a for a in activities if window_start <= a.activity_date <= target_date]

        if planned_sessions is None:
            planned_sessions = [planned_workout] if planned_workout else []
        deltas = calculate_deltas(window, planned_sessions, self.matching)

        planned = planned_workout or default_planned_session(target_date)
        state = self.compute_daily_state(athlete_id, target_date, deltas, baseline_profile, planned)
        adaptations = self.generate_adaptations(state, baseline_profile, planned)

        logger.info(
            f"Daily state for athlete {athlete_id} on {target_date}: "
            f"fatigue={state.fatigue_score}, recovery={state.recovery_need.value}, "
            f"glycogen={state.glycogen_status.value}"
        )
        return AdaptiveResult(
            state=state,
            adaptations=adaptations,
            deltas=deltas,
            weekly_summary=calculate_weekly_summary(deltas),
        )


# Create a singleton instance for convenience
adaptive_engine = AdaptiveEngine()
