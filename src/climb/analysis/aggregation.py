"""
Hourly and daily aggregation of reservations, ad conversions and surveys.

Reservations and ad conversions are folded into sparse per-segment hourly
buckets keyed by ISO hour, then rolled up to daily points. Survey
responses only exist per day and are merged into the daily rollup.
"""

import logging
import re

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from climb.analysis.identity import (
    build_first_seen_index,
    identity_events,
    reservation_identity_key,
)
from climb.analysis.segments import classify_department, dataset_keys_for, listing_segment
from climb.analysis.types import (
    DailyPoint,
    HourlyPoint,
    IncrementalityDataset,
    SegmentDataset,
    SegmentTotals,
)
from climb.constants import JST_OFFSET, SegmentKey, SurveyFileType
from climb.models.records import (
    DataSnapshot,
    KarteRecord,
    ListingCategoryData,
    Reservation,
    SurveyEntry,
)

logger = logging.getLogger(__name__)

__all__ = [
    "build_dataset_from_snapshot",
    "build_incrementality_dataset",
    "filter_segment_by_period",
    "to_date_key",
    "to_hour_key",
]

_ISO_HOUR = re.compile(r"^(\d{4}-\d{2}-\d{2})T(\d{2})")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLASH_DATE = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$")


@dataclass
class _HourlyAccumulator:
    reservations: int = 0
    true_first: int = 0
    listing_cv: float = 0.0


def to_hour_key(iso: str | None) -> str | None:
    """
    Truncate an ISO timestamp to its canonical hour key.

    Returns:
        "YYYY-MM-DDTHH:00:00+09:00", or None if the timestamp has no
        parseable date and hour in 0-23
    """
    if not iso:
        return None
    match = _ISO_HOUR.match(iso)
    if not match:
        return None

    date_part, hour_part = match.groups()
    if int(hour_part) > 23:
        return None
    return f"{date_part}T{hour_part}:00:00{JST_OFFSET}"


def to_date_key(value: str | None) -> str | None:
    """Normalize YYYY-MM-DD, YYYY/M/D or ISO datetime strings to YYYY-MM-DD."""
    if not value:
        return None
    if _ISO_DATE.match(value):
        return value

    slash = _SLASH_DATE.match(value)
    if slash:
        year, month, day = slash.groups()
        return f"{year}-{int(month):02d}-{int(day):02d}"

    try:
        return datetime.fromisoformat(value).date().isoformat()
    except ValueError:
        return None


def _hour_key_from_date(date_key: str, hour: int) -> str:
    return f"{date_key}T{hour:02d}:00:00{JST_OFFSET}"


def _is_same_date(iso_a: str | None, iso_b: str | None) -> bool:
    if not iso_a or not iso_b:
        return False
    return iso_a[:10] == iso_b[:10]


class _IncrementalityAggregator:
    """Owns the mutable buckets for a single aggregation pass."""

    def __init__(self) -> None:
        self.hourly: dict[SegmentKey, dict[str, _HourlyAccumulator]] = {
            key: defaultdict(_HourlyAccumulator) for key in SegmentKey
        }
        self.survey_daily: dict[SegmentKey, dict[str, float]] = {
            SegmentKey.GENERAL: {},
            SegmentKey.FEVER: {},
            SegmentKey.ENDOSCOPY: {},
        }
        self.dropped_reservations = 0
        self.dropped_listing_entries = 0
        self.dropped_surveys = 0

    def add_reservations(
        self, reservations: Iterable[Reservation], first_seen: dict[str, str]
    ) -> None:
        timed: list[tuple[str, str, Reservation]] = []
        for reservation in reservations:
            timestamp = reservation.event_timestamp()
            hour_key = to_hour_key(timestamp)
            if timestamp is None or hour_key is None:
                self.dropped_reservations += 1
                continue
            timed.append((timestamp, hour_key, reservation))

        # an identity is credited once, on its earliest reservation of the
        # first-seen date; sort is stable so input order breaks ties
        timed.sort(key=lambda item: item[0])
        credited: set[str] = set()

        for timestamp, hour_key, reservation in timed:
            identity_key = reservation_identity_key(reservation)
            is_true_first = False
            if (
                identity_key is not None
                and identity_key not in credited
                and _is_same_date(first_seen.get(identity_key), timestamp)
            ):
                credited.add(identity_key)
                is_true_first = True

            segment = classify_department(reservation.department)
            for key in dataset_keys_for(segment):
                bucket = self.hourly[key][hour_key]
                bucket.reservations += 1
                if is_true_first:
                    bucket.true_first += 1

    def add_listings(self, listing_data: Iterable[ListingCategoryData]) -> None:
        for category_data in listing_data:
            segment = listing_segment(category_data.category)
            if segment is None:
                continue
            keys = dataset_keys_for(segment)

            for entry in category_data.data:
                date_key = to_date_key(entry.date)
                if date_key is None:
                    self.dropped_listing_entries += 1
                    continue

                for hour, value in enumerate(entry.hourly_cv):
                    if not value:
                        continue
                    hour_key = _hour_key_from_date(date_key, hour)
                    for key in keys:
                        self.hourly[key][hour_key].listing_cv += value

    def add_surveys(self, surveys: Iterable[SurveyEntry]) -> None:
        for survey in surveys:
            date_key = to_date_key(survey.date)
            if date_key is None:
                self.dropped_surveys += 1
                continue

            google = survey.google_search + survey.google_map
            if survey.file_type == SurveyFileType.OUTPATIENT:
                fever = survey.fever_google_search
                if google > 0:
                    self._add_survey(SegmentKey.GENERAL, date_key, google)
                if fever > 0:
                    self._add_survey(SegmentKey.FEVER, date_key, fever)
                if google + fever > 0:
                    # keeps endoscopy dates aligned with outpatient survey dates
                    self._add_survey(SegmentKey.ENDOSCOPY, date_key, 0)
            elif survey.file_type == SurveyFileType.ENDOSCOPY and google > 0:
                self._add_survey(SegmentKey.ENDOSCOPY, date_key, google)

    def _add_survey(self, key: SegmentKey, date_key: str, value: float) -> None:
        daily = self.survey_daily[key]
        daily[date_key] = daily.get(date_key, 0) + value

    def build_segment(self, key: SegmentKey) -> SegmentDataset:
        hourly = [
            HourlyPoint(
                iso_hour=hour_key,
                date=hour_key[:10],
                hour=int(hour_key[11:13]),
                reservations=acc.reservations,
                true_first=acc.true_first,
                listing_cv=acc.listing_cv,
            )
            for hour_key, acc in sorted(self.hourly[key].items())
        ]

        daily: dict[str, DailyPoint] = {}
        for point in hourly:
            day = daily.setdefault(point.date, DailyPoint(date=point.date))
            day.reservations += point.reservations
            day.true_first += point.true_first
            day.listing_cv += point.listing_cv

        for date_key, value in self.survey_daily.get(key, {}).items():
            day = daily.setdefault(date_key, DailyPoint(date=date_key))
            day.survey_google += value

        daily_points = [daily[date_key] for date_key in sorted(daily)]
        return SegmentDataset(
            hourly=hourly, daily=daily_points, totals=_sum_totals(daily_points)
        )


def _sum_totals(daily: Iterable[DailyPoint]) -> SegmentTotals:
    totals = SegmentTotals()
    for point in daily:
        totals.reservations += point.reservations
        totals.true_first += point.true_first
        totals.listing_cv += point.listing_cv
        totals.survey_google += point.survey_google
    return totals


def build_incrementality_dataset(
    reservations: Iterable[Reservation],
    karte_records: Iterable[KarteRecord],
    listing_data: Iterable[ListingCategoryData],
    survey_data: Iterable[SurveyEntry],
) -> IncrementalityDataset:
    """
    Build per-segment hourly and daily series from raw records.

    A reservation counts as a true first visit when its patient resolves
    to an identity whose first sighting, across reservations and clinical
    visits, falls on the same date as the reservation. Only the earliest
    such reservation of each patient is credited. Rows with unparseable
    timestamps are dropped silently.

    Args:
        reservations: Reservation records
        karte_records: Clinical visit records
        listing_data: Ad-listing performance per category
        survey_data: Daily survey channel counts

    Returns:
        IncrementalityDataset with one SegmentDataset per SegmentKey
    """
    reservations = list(reservations)
    first_seen = build_first_seen_index(identity_events(reservations, karte_records))

    aggregator = _IncrementalityAggregator()
    aggregator.add_reservations(reservations, first_seen)
    aggregator.add_listings(listing_data)
    aggregator.add_surveys(survey_data)

    if aggregator.dropped_reservations or aggregator.dropped_listing_entries:
        logger.debug(
            f"Dropped {aggregator.dropped_reservations} reservations and "
            f"{aggregator.dropped_listing_entries} listing rows with bad timestamps"
        )
    if aggregator.dropped_surveys:
        logger.debug(f"Dropped {aggregator.dropped_surveys} undated survey rows")

    return IncrementalityDataset(
        segments={key: aggregator.build_segment(key) for key in SegmentKey}
    )


def build_dataset_from_snapshot(snapshot: DataSnapshot) -> IncrementalityDataset:
    """Convenience wrapper around build_incrementality_dataset()."""
    return build_incrementality_dataset(
        snapshot.reservations,
        snapshot.karte_records,
        snapshot.listing_data,
        snapshot.survey_data,
    )


def _in_month_range(month: str, start: str | None, end: str | None) -> bool:
    if start and month < start:
        return False
    if end and month > end:
        return False
    return True


def filter_segment_by_period(
    dataset: SegmentDataset,
    start_month: str | None = None,
    end_month: str | None = None,
) -> SegmentDataset:
    """
    Restrict a segment dataset to an inclusive YYYY-MM range.

    Either bound may be omitted. Totals are recomputed from the kept
    daily points.
    """
    hourly = [
        point.model_copy()
        for point in dataset.hourly
        if _in_month_range(point.date[:7], start_month, end_month)
    ]
    daily = [
        point.model_copy()
        for point in dataset.daily
        if _in_month_range(point.date[:7], start_month, end_month)
    ]
    return SegmentDataset(hourly=hourly, daily=daily, totals=_sum_totals(daily))
