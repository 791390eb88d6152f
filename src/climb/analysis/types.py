"""Analysis pipeline type definitions."""

from typing import Literal

from pydantic import BaseModel, Field

from climb.constants import JST_OFFSET, SegmentKey


class HourlyPoint(BaseModel):
    """Activity within one clock hour for one segment."""

    iso_hour: str = Field(description="Hour start, e.g. 2025-01-06T09:00:00+09:00")
    date: str = Field(description="YYYY-MM-DD")
    hour: int = Field(ge=0, le=23)
    reservations: int = Field(ge=0, description="Reservations received")
    true_first: int = Field(ge=0, description="Reservations by first-seen patients")
    listing_cv: float = Field(description="Ad conversions")


class DailyPoint(BaseModel):
    """Daily rollup of hourly activity plus survey responses."""

    date: str = Field(description="YYYY-MM-DD")
    reservations: int = Field(default=0, ge=0)
    true_first: int = Field(default=0, ge=0)
    listing_cv: float = 0.0
    survey_google: float = Field(default=0.0, description="Google answers")


class SegmentTotals(BaseModel):
    """Totals over all daily points of a segment."""

    reservations: int = 0
    true_first: int = 0
    listing_cv: float = 0.0
    survey_google: float = 0.0


class SegmentDataset(BaseModel):
    """
    Sparse hourly and daily series for one segment.

    Hours and dates without activity are not stored; use hour_cell() and
    day_cell() to read any cell with zero defaults.
    """

    hourly: list[HourlyPoint] = Field(default_factory=list)
    daily: list[DailyPoint] = Field(default_factory=list)
    totals: SegmentTotals = Field(default_factory=SegmentTotals)

    def hour_cell(self, date: str, hour: int) -> HourlyPoint:
        for point in self.hourly:
            if point.date == date and point.hour == hour:
                return point
        return HourlyPoint(
            iso_hour=f"{date}T{hour:02d}:00:00{JST_OFFSET}",
            date=date,
            hour=hour,
            reservations=0,
            true_first=0,
            listing_cv=0.0,
        )

    def day_cell(self, date: str) -> DailyPoint:
        for point in self.daily:
            if point.date == date:
                return point
        return DailyPoint(date=date)


class IncrementalityDataset(BaseModel):
    """Per-segment datasets built from one data snapshot."""

    segments: dict[SegmentKey, SegmentDataset] = Field(default_factory=dict)

    def segment(self, key: SegmentKey | str) -> SegmentDataset:
        return self.segments.get(SegmentKey(key), SegmentDataset())


class LagCorrelationPoint(BaseModel):
    """Correlation between source and target shifted by `lag` steps."""

    lag: int = Field(description="Target offset relative to source (hours)")
    correlation: float = Field(ge=-1.0, le=1.0, description="Pearson r")
    paired_samples: int = Field(ge=2, description="Aligned pairs used")


class DistributedLagResult(BaseModel):
    """
    Fitted distributed-lag model target[t] = b0 + sum(b_l * source[t-l]).

    coefficients[0] is the intercept; coefficients[1 + l] is the weight
    of lag l.
    """

    max_lag: int = Field(ge=0)
    coefficients: list[float] = Field(description="[intercept, lag0, lag1, ...]")
    total_effect: float = Field(description="Sum of all lag weights")
    r_squared: float = Field(ge=0.0, le=1.0)
    sample_size: int = Field(ge=0, description="Regression rows used")


CorrelationStrength = Literal["strong", "moderate", "weak", "none"]

EffectStatus = Literal["positive", "moderate", "weak", "negative", "unknown"]
EffectBasis = Literal["regression", "conversion_ratio", "none"]


class EffectVerdict(BaseModel):
    """Graded judgement of whether ads lift new patients."""

    status: EffectStatus
    badge: str = Field(description="Short label, e.g. EFFECTIVE or NO CV")
    headline: str
    basis: EffectBasis = Field(description="Which figure the grade is based on")


class LagContribution(BaseModel):
    """Weight of one lag in the distributed-lag fit."""

    lag: int = Field(ge=0, description="Populated hours back from the visit")
    coefficient: float


class SanityRow(BaseModel):
    """Per-day comparison of ad conversions, true first visits and surveys."""

    date: str
    listing_cv: float
    true_first: int
    gap_cv_vs_true: float
    survey_google: float
    survey_gap: float


class SegmentSummary(BaseModel):
    """Headline metrics for one segment and period."""

    total_true_first: int
    total_listing_cv: float
    total_survey_google: float
    cv_to_true_first_ratio: float | None = Field(
        default=None, description="True first visits per ad conversion"
    )
    google_coverage_ratio: float | None = Field(
        default=None, description="True first visits per Google survey answer"
    )
    peak_lag: LagCorrelationPoint | None = None
    peak_strength: CorrelationStrength | None = None
    estimated_lift_per_cv: float | None = None
    r_squared: float | None = None
    regression_sample_size: int | None = None
    effect: EffectVerdict
    top_lag_contributions: list[LagContribution] = Field(default_factory=list)


class SegmentAnalysis(BaseModel):
    """Full analysis output for one segment."""

    segment: SegmentKey
    start_month: str | None = None
    end_month: str | None = None
    dataset: SegmentDataset
    lag_correlations: list[LagCorrelationPoint] = Field(default_factory=list)
    distributed_lag: DistributedLagResult | None = None
    summary: SegmentSummary
    sanity_rows: list[SanityRow] = Field(default_factory=list)
