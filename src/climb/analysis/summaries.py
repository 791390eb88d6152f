"""Headline metrics, effect verdicts and per-day sanity tables for a segment."""

from collections.abc import Sequence

from climb.analysis.correlation import correlation_level, select_top_lag
from climb.analysis.types import (
    DailyPoint,
    DistributedLagResult,
    EffectVerdict,
    LagContribution,
    LagCorrelationPoint,
    SanityRow,
    SegmentDataset,
    SegmentSummary,
)
from climb.constants import TOP_LAG_CONTRIBUTIONS
from climb.constants import ConversionRatioThresholds as RT
from climb.constants import LiftThresholds as LT


def build_sanity_rows(daily: Sequence[DailyPoint]) -> list[SanityRow]:
    """
    Compare ad conversions and survey answers with true first visits per day.

    Args:
        daily: Daily points of one segment

    Returns:
        One SanityRow per date, newest first
    """
    rows = [
        SanityRow(
            date=point.date,
            listing_cv=point.listing_cv,
            true_first=point.true_first,
            gap_cv_vs_true=point.listing_cv - point.true_first,
            survey_google=point.survey_google,
            survey_gap=point.survey_google - point.true_first,
        )
        for point in daily
    ]
    return sorted(rows, key=lambda row: row.date, reverse=True)


def _grade_lift(lift: float) -> EffectVerdict:
    if lift >= LT.EFFECTIVE:
        return EffectVerdict(
            status="positive",
            badge="EFFECTIVE",
            headline="Ads clearly lift new patients",
            basis="regression",
        )
    if lift >= LT.MODERATE:
        return EffectVerdict(
            status="moderate",
            badge="MODERATE",
            headline="Ads contribute moderately to new patients",
            basis="regression",
        )
    if lift > LT.WEAK:
        return EffectVerdict(
            status="weak",
            badge="WEAK",
            headline="Net lift from ads is small",
            basis="regression",
        )
    if lift <= 0:
        return EffectVerdict(
            status="negative",
            badge="NO LIFT",
            headline="Ad conversions are not turning into new patients",
            basis="regression",
        )
    return EffectVerdict(
        status="weak",
        badge="LIMITED",
        headline="Ad contribution is limited",
        basis="regression",
    )


def _grade_conversion_ratio(ratio: float) -> EffectVerdict:
    if ratio >= RT.LIKELY_EFFECTIVE:
        return EffectVerdict(
            status="positive",
            badge="LIKELY EFFECTIVE",
            headline="Most ad conversions become genuinely new patients",
            basis="conversion_ratio",
        )
    if ratio >= RT.NEEDS_REVIEW:
        return EffectVerdict(
            status="moderate",
            badge="NEEDS REVIEW",
            headline="Ad conversions partly become new patients",
            basis="conversion_ratio",
        )
    if ratio > 0:
        return EffectVerdict(
            status="weak",
            badge="LOW IMPACT",
            headline="Most ad conversions do not become new patients",
            basis="conversion_ratio",
        )
    return EffectVerdict(
        status="unknown",
        badge="NEEDS DATA",
        headline="Not enough data to judge the ads",
        basis="none",
    )


def assess_effect(
    dataset: SegmentDataset, distributed_lag: DistributedLagResult | None
) -> EffectVerdict:
    """
    Grade the ad effect for a segment.

    The distributed-lag lift is used when a model was fitted. Otherwise
    the grade falls back to true first visits per ad conversion.

    Args:
        dataset: Segment dataset, already filtered to the period
        distributed_lag: Fitted model, or None

    Returns:
        EffectVerdict with status, badge and the figure it is based on
    """
    if not dataset.hourly and not dataset.daily:
        return EffectVerdict(
            status="unknown",
            badge="NO DATA",
            headline="No reservation, ad or survey data in this period",
            basis="none",
        )

    if distributed_lag is not None:
        return _grade_lift(distributed_lag.total_effect)

    totals = dataset.totals
    if totals.listing_cv == 0:
        return EffectVerdict(
            status="unknown",
            badge="NO CV",
            headline="No ad conversions recorded; check conversion tracking",
            basis="none",
        )
    return _grade_conversion_ratio(totals.true_first / totals.listing_cv)


def rank_lag_contributions(
    distributed_lag: DistributedLagResult | None,
    limit: int = TOP_LAG_CONTRIBUTIONS,
) -> list[LagContribution]:
    """Lag weights ordered by magnitude, intercept excluded, earliest lag first on ties."""
    if distributed_lag is None:
        return []

    contributions = [
        LagContribution(lag=lag, coefficient=value)
        for lag, value in enumerate(distributed_lag.coefficients[1:])
    ]
    contributions.sort(key=lambda item: -abs(item.coefficient))
    return contributions[:limit]


def summarize_segment(
    dataset: SegmentDataset,
    lag_correlations: Sequence[LagCorrelationPoint],
    distributed_lag: DistributedLagResult | None,
) -> SegmentSummary:
    """
    Generate headline metrics for a segment.

    Ratios are None when their denominator is zero.
    """
    totals = dataset.totals
    peak = select_top_lag(lag_correlations)

    return SegmentSummary(
        total_true_first=totals.true_first,
        total_listing_cv=totals.listing_cv,
        total_survey_google=totals.survey_google,
        cv_to_true_first_ratio=(
            totals.true_first / totals.listing_cv if totals.listing_cv > 0 else None
        ),
        google_coverage_ratio=(
            totals.true_first / totals.survey_google
            if totals.survey_google > 0
            else None
        ),
        peak_lag=peak,
        peak_strength=correlation_level(peak.correlation) if peak else None,
        estimated_lift_per_cv=distributed_lag.total_effect if distributed_lag else None,
        r_squared=distributed_lag.r_squared if distributed_lag else None,
        regression_sample_size=(
            distributed_lag.sample_size if distributed_lag else None
        ),
        effect=assess_effect(dataset, distributed_lag),
        top_lag_contributions=rank_lag_contributions(distributed_lag),
    )
