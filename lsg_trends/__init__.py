"""Local-body election trends: aggregation, registry and map joins."""

from .aggregator import aggregate, leading_front, rows_from_frame
from .models import (
    Candidate,
    CandidateRow,
    LocalBody,
    LocalBodyResult,
    PollingStation,
    Ward,
    WardResult,
)
from .parties import PartyGroups

__version__ = "0.3.0"
