"""
Synthetic record builders for incrementality tests.

Keeps test bodies focused on the behavior under test instead of the
full record shapes.
"""

from climb.analysis.types import HourlyPoint
from climb.constants import ListingCategory, SurveyFileType
from climb.models.records import (
    DataSnapshot,
    KarteRecord,
    ListingCategoryData,
    ListingEntry,
    Reservation,
    SurveyEntry,
)


def jst(date: str, hour: int, minute: int = 0) -> str:
    """Canonical JST timestamp for a date and hour."""
    return f"{date}T{hour:02d}:{minute:02d}:00+09:00"


def make_reservation(
    department: str = "内科外来",
    received_at: str | None = None,
    name: str | None = "やまだたろう",
    **kwargs,
) -> Reservation:
    return Reservation(
        department=department,
        received_at_iso=received_at,
        patient_name_normalized=name,
        **kwargs,
    )


def make_karte(
    date_iso: str,
    patient_number: str | int | None = None,
    name: str | None = None,
    birth_date: str | None = None,
    department: str | None = None,
) -> KarteRecord:
    return KarteRecord(
        date_iso=date_iso,
        patient_number=patient_number,
        patient_name_normalized=name,
        birth_date_iso=birth_date,
        department=department,
    )


def make_listing(
    category: ListingCategory | str, date: str, hourly: dict[int, float]
) -> ListingCategoryData:
    """Listing data for one category and day with conversions at given hours."""
    hourly_cv = [float(hourly.get(hour, 0)) for hour in range(24)]
    return ListingCategoryData(
        category=category,
        data=[ListingEntry(date=date, cv=sum(hourly_cv), hourly_cv=hourly_cv)],
    )


def make_survey(
    date: str,
    file_type: SurveyFileType | str = SurveyFileType.OUTPATIENT,
    **channels: float,
) -> SurveyEntry:
    return SurveyEntry(date=date, file_type=file_type, **channels)


def make_hourly_series(
    date: str, listing_cv: list[float], true_first: list[int]
) -> list[HourlyPoint]:
    """Consecutive hourly points starting at 00:00 of the given date."""
    return [
        HourlyPoint(
            iso_hour=jst(date, hour),
            date=date,
            hour=hour,
            reservations=first,
            true_first=first,
            listing_cv=cv,
        )
        for hour, (cv, first) in enumerate(zip(listing_cv, true_first, strict=True))
    ]


def build_clinic_snapshot() -> DataSnapshot:
    """
    A small but complete snapshot spanning two months.

    - Patient A books general medicine twice on 2025-01-06 (first time ever)
    - Patient B books the fever clinic on 2025-01-07 but visited in December
    - An anonymous colonoscopy booking on 2025-02-03
    - Listing conversions for general, fever and gastroscopy
    - Outpatient and endoscopy surveys
    """
    return DataSnapshot(
        reservations=[
            make_reservation("内科・外科外来（大岩医師）", jst("2025-01-06", 9, 15), "a"),
            make_reservation("内科・外科外来（大岩医師）", jst("2025-01-06", 14, 30), "a"),
            make_reservation("●発熱・風邪症状外来", jst("2025-01-07", 10), "b"),
            make_reservation("大腸カメラ（胃カメラ併用もこちら）", jst("2025-02-03", 8), None),
        ],
        karte_records=[
            make_karte("2024-12-20", name="b"),
            make_karte("2025-01-06", patient_number="000123"),
        ],
        listing_data=[
            make_listing(ListingCategory.INTERNAL_MEDICINE, "2025-01-06", {8: 1, 9: 2}),
            make_listing(ListingCategory.FEVER_CLINIC, "2025/1/7", {10: 1}),
            make_listing(ListingCategory.GASTROSCOPY, "2025-02-03", {7: 3}),
        ],
        survey_data=[
            make_survey("2025-01-06", google_search=2, google_map=1, fever_google_search=1),
            make_survey("2025-02-03", SurveyFileType.ENDOSCOPY, google_search=4),
        ],
    )
