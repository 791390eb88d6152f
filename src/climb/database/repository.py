"""
Snapshot persistence: save and load whole DataSnapshots.

The analysis engine never reads the store directly; callers load a
snapshot here and pass it in.
"""

import logging

from pathlib import Path

from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from climb.database.models import KarteRow, ListingRow, ReservationRow, SurveyRow
from climb.models.records import (
    DataSnapshot,
    KarteRecord,
    ListingCategoryData,
    ListingEntry,
    Reservation,
    SurveyEntry,
)

logger = logging.getLogger(__name__)

_SURVEY_CHANNELS = [
    name for name in SurveyEntry.model_fields if name not in ("date", "file_type")
]


class StoreStats(BaseModel):
    """Row counts per table."""

    reservations: int
    karte_records: int
    listing_entries: int
    survey_entries: int


def load_snapshot_file(path: Path | str) -> DataSnapshot:
    """
    Read a snapshot JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the content does not match DataSnapshot
    """
    text = Path(path).read_text(encoding="utf-8")
    return DataSnapshot.model_validate_json(text)


class SnapshotRepository:
    """Reads and writes DataSnapshots through a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def clear(self) -> None:
        for model in (ReservationRow, KarteRow, ListingRow, SurveyRow):
            self.db.execute(delete(model))

    def save(self, snapshot: DataSnapshot, replace: bool = True) -> StoreStats:
        """
        Store every record of a snapshot.

        Args:
            snapshot: Records to store
            replace: Delete existing rows first (otherwise append)

        Returns:
            Row counts after the save
        """
        if replace:
            self.clear()

        self.db.add_all(
            ReservationRow(**reservation.model_dump())
            for reservation in snapshot.reservations
        )
        self.db.add_all(self._karte_row(record) for record in snapshot.karte_records)
        for category_data in snapshot.listing_data:
            self.db.add_all(
                ListingRow(category=category_data.category.value, **entry.model_dump())
                for entry in category_data.data
            )
        self.db.add_all(
            SurveyRow(
                date=survey.date,
                file_type=survey.file_type.value,
                channels={name: getattr(survey, name) for name in _SURVEY_CHANNELS},
            )
            for survey in snapshot.survey_data
        )
        self.db.flush()

        stats = self.stats()
        logger.info(
            f"Stored snapshot: {stats.reservations} reservations, "
            f"{stats.karte_records} visits, {stats.listing_entries} listing rows, "
            f"{stats.survey_entries} survey rows"
        )
        return stats

    @staticmethod
    def _karte_row(record: KarteRecord) -> KarteRow:
        number = record.patient_number
        return KarteRow(
            date_iso=record.date_iso,
            visit_type=record.visit_type,
            patient_number=None if number is None else str(number),
            patient_number_is_int=isinstance(number, int),
            patient_name_normalized=record.patient_name_normalized,
            birth_date_iso=record.birth_date_iso,
            department=record.department,
        )

    def load(self) -> DataSnapshot:
        """Load everything in the store as a DataSnapshot, in insertion order."""
        reservations = [
            Reservation.model_validate(
                {name: getattr(row, name) for name in Reservation.model_fields}
            )
            for row in self.db.scalars(select(ReservationRow).order_by(ReservationRow.id))
        ]

        karte_records = []
        for row in self.db.scalars(select(KarteRow).order_by(KarteRow.id)):
            number: str | int | None = row.patient_number
            if number is not None and row.patient_number_is_int:
                number = int(number)
            karte_records.append(
                KarteRecord.model_validate(
                    {
                        "date_iso": row.date_iso,
                        "visit_type": row.visit_type,
                        "patient_number": number,
                        "patient_name_normalized": row.patient_name_normalized,
                        "birth_date_iso": row.birth_date_iso,
                        "department": row.department,
                    }
                )
            )

        by_category: dict[str, list[ListingEntry]] = {}
        for listing_row in self.db.scalars(select(ListingRow).order_by(ListingRow.id)):
            by_category.setdefault(listing_row.category, []).append(
                ListingEntry(
                    date=listing_row.date,
                    amount=listing_row.amount,
                    cv=listing_row.cv,
                    cvr=listing_row.cvr,
                    cpa=listing_row.cpa,
                    hourly_cv=listing_row.hourly_cv or [],
                )
            )
        listing_data = [
            ListingCategoryData.model_validate({"category": category, "data": entries})
            for category, entries in by_category.items()
        ]

        survey_data = [
            SurveyEntry.model_validate(
                {"date": row.date, "file_type": row.file_type, **(row.channels or {})}
            )
            for row in self.db.scalars(select(SurveyRow).order_by(SurveyRow.id))
        ]

        return DataSnapshot(
            reservations=reservations,
            karte_records=karte_records,
            listing_data=listing_data,
            survey_data=survey_data,
        )

    def stats(self) -> StoreStats:
        def count(model: type) -> int:
            return int(self.db.scalar(select(func.count()).select_from(model)) or 0)

        return StoreStats(
            reservations=count(ReservationRow),
            karte_records=count(KarteRow),
            listing_entries=count(ListingRow),
            survey_entries=count(SurveyRow),
        )
