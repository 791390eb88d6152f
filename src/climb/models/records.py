"""
Typed records for each data source.

These are the already-parsed shapes handed over by the CSV layer and
round-tripped by the storage layer. Every model dumps to plain JSON.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from climb.constants import (
    HOURS_PER_DAY,
    JST_OFFSET,
    ListingCategory,
    SurveyFileType,
)

ReservationVisitType = Literal["初診", "再診", "未設定"]
KarteVisitType = Literal["初診", "再診", "不明"]


class Reservation(BaseModel):
    """Appointment reservation exported by the booking system."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    department: str = Field(description="Department label as booked")
    visit_type: ReservationVisitType = Field(
        default="未設定", description="First visit / revisit flag from the source"
    )
    reservation_date: str | None = Field(default=None, description="YYYY-MM-DD")
    reservation_hour: int | None = Field(default=None, description="Hour received")
    received_at_iso: str | None = Field(
        default=None, description="When the booking was received"
    )
    booking_iso: str | None = Field(default=None, description="Booking timestamp")
    appointment_iso: str | None = Field(
        default=None, description="Scheduled appointment timestamp"
    )
    patient_id: str | None = Field(
        default=None,
        description="Booking-system ID, kept for export only; reservations match by name",
    )
    patient_name: str | None = Field(default=None, description="Raw patient name")
    patient_name_normalized: str | None = Field(
        default=None, description="Name normalized upstream for matching"
    )

    def event_timestamp(self) -> str | None:
        """Return the timestamp the reservation is attributed to."""
        return self.received_at_iso or self.booking_iso or self.appointment_iso or None


class KarteRecord(BaseModel):
    """Clinical visit row from the electronic medical record."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    date_iso: str = Field(description="Visit date YYYY-MM-DD")
    visit_type: KarteVisitType = Field(default="不明")
    patient_number: str | int | None = Field(default=None)
    patient_name_normalized: str | None = Field(default=None)
    birth_date_iso: str | None = Field(default=None)
    department: str | None = Field(default=None)

    def occurred_at(self) -> str | None:
        """Visit date as a canonical midnight timestamp."""
        if not self.date_iso:
            return None
        return f"{self.date_iso}T00:00:00{JST_OFFSET}"


class ListingEntry(BaseModel):
    """One day of ad-listing performance."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    date: str
    amount: float = 0.0
    cv: float = 0.0
    cvr: float = 0.0
    cpa: float = 0.0
    hourly_cv: list[float] = Field(
        default_factory=list, description="Conversions per hour (index = hour)"
    )

    @field_validator("hourly_cv")
    @classmethod
    def _limit_hours(cls, value: list[float]) -> list[float]:
        if len(value) > HOURS_PER_DAY:
            raise ValueError(
                f"hourly_cv has {len(value)} values, expected at most {HOURS_PER_DAY}"
            )
        return value


class ListingCategoryData(BaseModel):
    """Listing performance for one ad category."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    category: ListingCategory
    data: list[ListingEntry] = Field(default_factory=list)


class SurveyEntry(BaseModel):
    """Daily patient-survey channel counts."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    date: str = Field(description="YYYY-MM-DD")
    file_type: SurveyFileType
    google_search: float = 0
    yahoo_search: float = 0
    google_map: float = 0
    signboard: float = 0
    medical_referral: float = 0
    friend_referral: float = 0
    flyer: float = 0
    youtube: float = 0
    liberty_city: float = 0
    ai_search: float = 0
    fever_google_search: float = 0


class DataSnapshot(BaseModel):
    """Everything the engine needs for one analysis run."""

    reservations: list[Reservation] = Field(default_factory=list)
    karte_records: list[KarteRecord] = Field(default_factory=list)
    listing_data: list[ListingCategoryData] = Field(default_factory=list)
    survey_data: list[SurveyEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.reservations
            or self.karte_records
            or self.listing_data
            or self.survey_data
        )
