"""
Tests for the typed source records.
"""

import math

import pytest

from pydantic import ValidationError

from climb.constants import SurveyFileType
from climb.models.records import KarteRecord, ListingEntry, Reservation, SurveyEntry


class TestRecordValidation:
    """Test what the record layer accepts."""

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_hourly_cv_must_be_finite(self, value):
        with pytest.raises(ValidationError):
            ListingEntry(date="2025-01-06", hourly_cv=[1.0, value])

    def test_listing_totals_must_be_finite(self):
        with pytest.raises(ValidationError):
            ListingEntry(date="2025-01-06", cpa=math.inf)

    def test_survey_channels_must_be_finite(self):
        with pytest.raises(ValidationError):
            SurveyEntry(
                date="2025-01-06",
                file_type=SurveyFileType.OUTPATIENT,
                google_search=math.nan,
            )

    def test_hourly_cv_limited_to_one_day(self):
        with pytest.raises(ValidationError):
            ListingEntry(date="2025-01-06", hourly_cv=[0.0] * 25)

    def test_empty_department_is_allowed(self):
        assert Reservation(department="").department == ""


class TestRecordTimestamps:
    """Test timestamp attribution helpers."""

    def test_event_timestamp_precedence(self):
        reservation = Reservation(
            department="内科",
            booking_iso="2025-01-05T10:00:00+09:00",
            appointment_iso="2025-01-06T09:00:00+09:00",
        )

        assert reservation.event_timestamp() == "2025-01-05T10:00:00+09:00"

    def test_event_timestamp_missing(self):
        assert Reservation(department="内科", received_at_iso="").event_timestamp() is None

    def test_karte_occurred_at_midnight(self):
        record = KarteRecord(date_iso="2025-01-06")

        assert record.occurred_at() == "2025-01-06T00:00:00+09:00"
