"""
Constants and mappings for clinic incrementality analysis.

Department keywords, listing categories and survey channels follow the
labels used in the clinic's CSV exports.
"""

import re

from enum import Enum
from pathlib import Path

# ============================================================================
# Segments
# ============================================================================


class Segment(str, Enum):
    """Clinical segment a department or ad category belongs to."""

    GENERAL = "general"
    FEVER = "fever"
    ENDOSCOPY_STOMACH = "endoscopy_stomach"
    ENDOSCOPY_COLON = "endoscopy_colon"


class SegmentKey(str, Enum):
    """Keys of the per-segment datasets produced by aggregation."""

    ALL = "all"
    GENERAL = "general"
    FEVER = "fever"
    ENDOSCOPY = "endoscopy"
    ENDOSCOPY_STOMACH = "endoscopy_stomach"
    ENDOSCOPY_COLON = "endoscopy_colon"


# Dataset keys each classified segment contributes to (besides ALL)
SEGMENT_DATASET_KEYS: dict[Segment, tuple[SegmentKey, ...]] = {
    Segment.GENERAL: (SegmentKey.GENERAL,),
    Segment.FEVER: (SegmentKey.FEVER,),
    Segment.ENDOSCOPY_STOMACH: (SegmentKey.ENDOSCOPY, SegmentKey.ENDOSCOPY_STOMACH),
    Segment.ENDOSCOPY_COLON: (SegmentKey.ENDOSCOPY, SegmentKey.ENDOSCOPY_COLON),
}

# ============================================================================
# Department keyword rules (evaluated in this order, first match wins)
# ============================================================================

FEVER_PATTERNS = (re.compile("発熱"), re.compile("風邪"))
GENERAL_PATTERNS = (re.compile("総合診療"), re.compile("内科"))
# Colon is tested before stomach: labels matching both collapse to colon
ENDOSCOPY_COLON_PATTERNS = (
    re.compile("大腸"),
    re.compile("内視鏡ドック"),
    re.compile("人間ドックB"),
    re.compile("内視鏡"),
)
ENDOSCOPY_STOMACH_PATTERNS = (re.compile("胃"), re.compile("人間ドックA"))

SEGMENT_RULES: tuple[tuple[Segment, tuple[re.Pattern[str], ...]], ...] = (
    (Segment.FEVER, FEVER_PATTERNS),
    (Segment.GENERAL, GENERAL_PATTERNS),
    (Segment.ENDOSCOPY_COLON, ENDOSCOPY_COLON_PATTERNS),
    (Segment.ENDOSCOPY_STOMACH, ENDOSCOPY_STOMACH_PATTERNS),
)

# ============================================================================
# Listing (ad) categories
# ============================================================================


class ListingCategory(str, Enum):
    """Ad-listing campaign categories exported by the ad platform."""

    INTERNAL_MEDICINE = "内科"
    GASTROSCOPY = "胃カメラ"
    COLONOSCOPY = "大腸カメラ"
    FEVER_CLINIC = "発熱外来"


LISTING_SEGMENT_MAP: dict[ListingCategory, Segment] = {
    ListingCategory.FEVER_CLINIC: Segment.FEVER,
    ListingCategory.INTERNAL_MEDICINE: Segment.GENERAL,
    ListingCategory.GASTROSCOPY: Segment.ENDOSCOPY_STOMACH,
    ListingCategory.COLONOSCOPY: Segment.ENDOSCOPY_COLON,
}

HOURS_PER_DAY = 24

# ============================================================================
# Surveys
# ============================================================================


class SurveyFileType(str, Enum):
    """Survey export variants."""

    OUTPATIENT = "外来"
    ENDOSCOPY = "内視鏡"


# ============================================================================
# Timestamps
# ============================================================================

# All canonical timestamps carry the clinic's fixed offset (JST)
JST_OFFSET = "+09:00"
MIN_ISO_LENGTH = 10

# ============================================================================
# Analysis defaults
# ============================================================================

DEFAULT_LAG_CORRELATION_WINDOW = 48  # hours swept in each direction
DEFAULT_DISTRIBUTED_LAG_WINDOW = 24  # hours of history in the regression
SINGULAR_PIVOT_EPSILON = 1e-8


class CorrelationThresholds:
    """|r| cut-offs for describing correlation strength."""

    STRONG = 0.7
    MODERATE = 0.4
    WEAK = 0.2


class LiftThresholds:
    """Estimated new patients per ad conversion from the regression."""

    EFFECTIVE = 0.5
    MODERATE = 0.2
    WEAK = 0.05


class ConversionRatioThresholds:
    """True first visits per ad conversion, used when no regression fits."""

    LIKELY_EFFECTIVE = 0.7
    NEEDS_REVIEW = 0.4


TOP_LAG_CONTRIBUTIONS = 5


# ============================================================================
# Storage / logging locations
# ============================================================================

DEFAULT_HOME_DIR = Path.home() / ".climb"
DEFAULT_DATABASE_PATH = str(DEFAULT_HOME_DIR / "climb.db")
DEFAULT_LOG_DIR = DEFAULT_HOME_DIR / "logs"
DEFAULT_LOG_FILE = "climb.log"
DEFAULT_LOG_BACKUP_COUNT = 5
DEFAULT_LOG_MAX_SIZE_MB = 10
