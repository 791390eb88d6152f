"""Typed input records for the incrementality engine."""

from climb.models.records import (
    DataSnapshot,
    KarteRecord,
    ListingCategoryData,
    ListingEntry,
    Reservation,
    SurveyEntry,
)

__all__ = [
    "DataSnapshot",
    "KarteRecord",
    "ListingCategoryData",
    "ListingEntry",
    "Reservation",
    "SurveyEntry",
]
