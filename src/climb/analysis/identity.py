"""
Patient identity resolution across reservation and visit records.

Reservations and clinical visits are collected by different systems and
share no common patient ID. Each record is reduced to an identity key
built from whichever identifying fields it carries, and the earliest
timestamp per key is indexed so that genuinely new patients can be
told apart from returning ones.
"""

import logging
import re
import unicodedata

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from climb.constants import MIN_ISO_LENGTH
from climb.models.records import KarteRecord, Reservation

logger = logging.getLogger(__name__)

__all__ = [
    "IdentityEvent",
    "build_first_seen_index",
    "create_patient_identity_key",
    "identity_events",
    "karte_identity_key",
    "normalize_name_for_matching",
    "reservation_identity_key",
]

KATAKANA_TO_HIRAGANA_OFFSET = 0x60
_KATAKANA = re.compile("[ァ-ヶ]")
_RUBY = re.compile(r"[（(][^）)]*[）)]")
_WHITESPACE = re.compile(r"\s+")
_NON_DIGITS = re.compile(r"[^\d]")


class IdentityEvent(BaseModel):
    """A sighting of a (possibly unresolved) patient at a point in time."""

    model_config = ConfigDict(frozen=True)

    identity_key: str | None
    occurred_at: str | None


def _to_hiragana(value: str) -> str:
    return _KATAKANA.sub(
        lambda m: chr(ord(m.group(0)) - KATAKANA_TO_HIRAGANA_OFFSET), value
    )


def normalize_name_for_matching(value: str | None) -> str | None:
    """
    Normalize a raw patient name so spelling variants compare equal.

    Applies NFKC, drops bracketed furigana, unifies katakana to hiragana
    and removes all whitespace.

    Args:
        value: Raw name as typed into the source system

    Returns:
        Normalized name, or None if nothing usable remains
    """
    if not value:
        return None

    text = unicodedata.normalize("NFKC", value)
    text = _RUBY.sub("", text)
    text = _WHITESPACE.sub(" ", text.replace("　", " ")).strip()
    if not text:
        return None

    hiragana = _WHITESPACE.sub("", _to_hiragana(text))
    return hiragana or None


def _normalize_patient_number(value: str | int | None) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)

    digits = _NON_DIGITS.sub("", value)
    if not digits:
        return None
    return str(int(digits))


def create_patient_identity_key(
    *,
    patient_id: str | None = None,
    patient_number: str | int | None = None,
    patient_name: str | None = None,
    patient_name_normalized: str | None = None,
    birth_date_iso: str | None = None,
) -> str | None:
    """
    Build a deterministic identity key from the available fields.

    Fields are consulted in a fixed priority order: explicit patient ID,
    patient number, name with birth date, name alone. The first usable
    combination determines the key, so equal inputs always give equal keys.

    Returns:
        Identity key, or None when no identifying field is present
    """
    if patient_id and patient_id.strip():
        return f"pid:{patient_id.strip()}"

    number_key = _normalize_patient_number(patient_number)
    if number_key:
        return f"pn:{number_key}"

    name = patient_name_normalized or normalize_name_for_matching(patient_name)

    if name and birth_date_iso:
        return f"nb:{name}|{birth_date_iso}"
    if name:
        return f"n:{name}"
    return None


def reservation_identity_key(reservation: Reservation) -> str | None:
    """
    Identity key for a reservation.

    Reservations resolve by name only; patient_id is not consulted.
    """
    return create_patient_identity_key(
        patient_name_normalized=reservation.patient_name_normalized,
        patient_name=reservation.patient_name,
    )


def karte_identity_key(record: KarteRecord) -> str | None:
    """Identity key for a clinical visit record."""
    return create_patient_identity_key(
        patient_number=record.patient_number,
        patient_name_normalized=record.patient_name_normalized,
        birth_date_iso=record.birth_date_iso,
    )


def identity_events(
    reservations: Iterable[Reservation], karte_records: Iterable[KarteRecord]
) -> list[IdentityEvent]:
    """Collect identity sightings from every source that can see a patient."""
    events = [
        IdentityEvent(
            identity_key=reservation_identity_key(reservation),
            occurred_at=reservation.event_timestamp(),
        )
        for reservation in reservations
    ]
    events.extend(
        IdentityEvent(
            identity_key=karte_identity_key(record),
            occurred_at=record.occurred_at(),
        )
        for record in karte_records
    )
    return events


def _is_valid_iso_like(value: str | None) -> bool:
    return isinstance(value, str) and len(value) >= MIN_ISO_LENGTH


def build_first_seen_index(events: Iterable[IdentityEvent]) -> dict[str, str]:
    """
    Map each identity key to its earliest timestamp.

    Timestamps are canonical ISO-8601 strings with a fixed offset and are
    compared lexicographically. Only a strictly earlier timestamp replaces
    an existing entry, so among equal instants the first event wins.
    Events without a key or with an unusable timestamp are skipped.

    Args:
        events: Identity events from all sources, in any order

    Returns:
        Dictionary of identity key -> earliest ISO timestamp
    """
    index: dict[str, str] = {}
    skipped = 0

    for event in events:
        iso = event.occurred_at
        if not event.identity_key or iso is None or not _is_valid_iso_like(iso):
            skipped += 1
            continue

        previous = index.get(event.identity_key)
        if previous is None or iso < previous:
            index[event.identity_key] = iso

    if skipped:
        logger.debug(f"First-seen index skipped {skipped} unresolvable events")
    return index
