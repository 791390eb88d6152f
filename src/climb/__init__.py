"""
CLIMB: Clinic Listing Incrementality & Marketing Breakdown

Links ad-listing conversions to genuinely new patients by resolving
patients across reservation and clinical records, then measuring lagged
correlation and distributed-lag lift per clinical segment.
"""

from climb.analysis.service import IncrementalityService
from climb.models.records import DataSnapshot

__all__ = ["DataSnapshot", "IncrementalityService"]
