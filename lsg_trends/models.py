"""
Plain data records shared by the aggregator, the registry join and the views.

Nothing here is mutated after construction: every load builds fresh records.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

# Seat buckets, in the order ties are listed and tables are printed.
FRONTS = ("LDF", "UDF", "NDA", "IND")
DEFAULT_FRONT = "IND"
HUNG = "Hung"
NOT_AVAILABLE = "N/A"

MUNICIPAL_CORPORATION = "Municipal Corporation"
MUNICIPALITY = "Municipality"
GRAMA_PANCHAYAT = "Grama Panchayat"
BLOCK_PANCHAYAT = "Block Panchayat"
DISTRICT_PANCHAYAT = "District Panchayat"

LB_TYPES = (
    MUNICIPAL_CORPORATION,
    MUNICIPALITY,
    GRAMA_PANCHAYAT,
    BLOCK_PANCHAYAT,
    DISTRICT_PANCHAYAT,
)
# Tiers that own wards, voters and polling stations directly.
BASE_TYPES = (MUNICIPAL_CORPORATION, MUNICIPALITY, GRAMA_PANCHAYAT)


def seat_bucket(front: str) -> str:
    """Fronts outside the three alliances are tallied with independents."""
    return front if front in FRONTS else DEFAULT_FRONT


def empty_tally() -> Dict[str, int]:
    return {front: 0 for front in FRONTS}


@dataclass(frozen=True)
class CandidateRow:
    """One row of the trends feed: a candidate's count in one ward."""
    lb_code: str
    ward_no: str
    candidate: str
    party: str = ""
    votes: int = 0
    status: str = ""
    ward_name: str = ""
    lb_name: str = ""
    district: str = ""


@dataclass(frozen=True)
class Candidate:
    name: str
    party: str
    front: str
    votes: int


@dataclass(frozen=True)
class WardResult:
    ward_no: str
    ward_name: str
    candidates: Tuple[Candidate, ...] = ()
    winner: Optional[Candidate] = None
    leading_hint: Optional[Candidate] = None

    @property
    def declared(self) -> bool:
        return self.winner is not None

    @property
    def top(self) -> Optional[Candidate]:
        return self.candidates[0] if self.candidates else None


@dataclass(frozen=True)
class LocalBodyResult:
    lb_code: str
    lb_name: str
    district: str
    wards: Dict[str, WardResult] = field(default_factory=dict)
    seats: Dict[str, int] = field(default_factory=empty_tally)
    wards_declared: int = 0
    leading_front: str = NOT_AVAILABLE

    @property
    def candidate_count(self) -> int:
        return sum(len(w.candidates) for w in self.wards.values())

    @property
    def front_votes(self) -> Dict[str, int]:
        totals = empty_tally()
        for ward in self.wards.values():
            for c in ward.candidates:
                totals[seat_bucket(c.front)] += c.votes
        return totals

    @property
    def vote_share(self) -> Dict[str, float]:
        """Percentage of all counted votes per seat bucket (0.0 before counting)."""
        totals = self.front_votes
        polled = sum(totals.values())
        if polled <= 0:
            return {front: 0.0 for front in FRONTS}
        return {front: round(votes * 100.0 / polled, 2) for front, votes in totals.items()}


@dataclass(frozen=True)
class LocalBody:
    lb_code: str
    name: str
    lb_type: str
    district: str
    total_wards: int = 0


@dataclass(frozen=True)
class Ward:
    ward_code: str
    name: str
    ward_no: int
    lb_code: str
    total_voters: int = 0
    male_voters: int = 0
    female_voters: int = 0
    other_voters: int = 0


@dataclass(frozen=True)
class PollingStation:
    ps_no: int
    name: str
    ward_code: str
    lb_code: str
