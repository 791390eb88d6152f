"""
SQLAlchemy ORM models for the CLIMB data store.

One table per source record type. Rows mirror the pydantic records in
climb.models.records and are only read back as a whole snapshot.
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from climb.database.types import NumericJSON


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def utc_now() -> datetime:
    """Return current UTC timestamp for database defaults."""
    return datetime.now(UTC)


class ReservationRow(Base):
    """Reservation exported by the booking system."""

    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    department: Mapped[str] = mapped_column(String)
    visit_type: Mapped[str] = mapped_column(String(8), default="未設定")
    reservation_date: Mapped[str | None] = mapped_column(String(10))
    reservation_hour: Mapped[int | None] = mapped_column(Integer)
    received_at_iso: Mapped[str | None] = mapped_column(String(32))
    booking_iso: Mapped[str | None] = mapped_column(String(32))
    appointment_iso: Mapped[str | None] = mapped_column(String(32))
    patient_id: Mapped[str | None] = mapped_column(String)
    patient_name: Mapped[str | None] = mapped_column(String)
    patient_name_normalized: Mapped[str | None] = mapped_column(String)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self) -> str:
        return f"<ReservationRow(id={self.id}, department={self.department}, received={self.received_at_iso})>"


class KarteRow(Base):
    """Clinical visit record."""

    __tablename__ = "karte_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    date_iso: Mapped[str] = mapped_column(String(10))
    visit_type: Mapped[str] = mapped_column(String(8), default="不明")
    # stored as text so leading zeros survive; integers round-trip via JSON
    patient_number: Mapped[str | None] = mapped_column(String)
    patient_number_is_int: Mapped[bool] = mapped_column(default=False)
    patient_name_normalized: Mapped[str | None] = mapped_column(String)
    birth_date_iso: Mapped[str | None] = mapped_column(String(10))
    department: Mapped[str | None] = mapped_column(String)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self) -> str:
        return f"<KarteRow(id={self.id}, date={self.date_iso})>"


class ListingRow(Base):
    """One day of listing performance for one ad category."""

    __tablename__ = "listing_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String)
    date: Mapped[str] = mapped_column(String(10))
    amount: Mapped[float] = mapped_column(Float, default=0.0)
    cv: Mapped[float] = mapped_column(Float, default=0.0)
    cvr: Mapped[float] = mapped_column(Float, default=0.0)
    cpa: Mapped[float] = mapped_column(Float, default=0.0)
    hourly_cv: Mapped[list[float]] = mapped_column(NumericJSON(list), default=list)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self) -> str:
        return f"<ListingRow(id={self.id}, category={self.category}, date={self.date})>"


class SurveyRow(Base):
    """Daily survey channel counts."""

    __tablename__ = "survey_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    date: Mapped[str] = mapped_column(String(10))
    file_type: Mapped[str] = mapped_column(String(8))
    channels: Mapped[dict[str, float]] = mapped_column(NumericJSON(dict), default=dict)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        CheckConstraint("file_type IN ('外来', '内視鏡')", name="chk_survey_file_type"),
    )

    def __repr__(self) -> str:
        return f"<SurveyRow(id={self.id}, date={self.date}, type={self.file_type})>"
