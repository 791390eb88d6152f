"""Department label to clinical segment classification."""

from climb.constants import (
    LISTING_SEGMENT_MAP,
    SEGMENT_DATASET_KEYS,
    SEGMENT_RULES,
    ListingCategory,
    Segment,
    SegmentKey,
)

__all__ = [
    "classify_department",
    "dataset_keys_for",
    "listing_segment",
]


def classify_department(department: str | None) -> Segment | None:
    """
    Map a free-text department label to a clinical segment.

    Rules are checked in priority order (fever, general medicine,
    colonoscopy, gastroscopy) and the first matching rule wins. A label
    mentioning both endoscopy types therefore lands in the colon segment,
    e.g. "大腸カメラ（胃カメラ併用もこちら）".

    Args:
        department: Department label from a reservation or visit record

    Returns:
        Matching segment, or None when no rule applies
    """
    if not department:
        return None

    for segment, patterns in SEGMENT_RULES:
        if any(pattern.search(department) for pattern in patterns):
            return segment
    return None


def listing_segment(category: ListingCategory | str) -> Segment | None:
    """Segment an ad-listing category feeds, None for unknown categories."""
    try:
        return LISTING_SEGMENT_MAP[ListingCategory(category)]
    except ValueError:
        return None


def dataset_keys_for(segment: Segment | None) -> tuple[SegmentKey, ...]:
    """Dataset keys an event of the given segment is counted under."""
    if segment is None:
        return (SegmentKey.ALL,)
    return (SegmentKey.ALL, *SEGMENT_DATASET_KEYS[segment])
