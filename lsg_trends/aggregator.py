"""
Trend aggregation: per-candidate ward rows -> per-local-body results.

The winner of a ward is decided purely from vote counts. The feed's status
column is only used to remember a provisional "leading" candidate.
"""

import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .models import (
    FRONTS,
    HUNG,
    NOT_AVAILABLE,
    Candidate,
    CandidateRow,
    LocalBodyResult,
    WardResult,
    empty_tally,
    seat_bucket,
)
from .parties import PartyGroups, normalize_label
from .tables import clean_text, records, to_int, ward_key

logger = logging.getLogger(__name__)

LEADING_STATUS = "leading"

TREND_COLUMNS = {
    "district": ["District"],
    "lb_code": ["LB_Code", "Local Body Code", "lb_code"],
    "lb_name": ["LB_Name", "Local Body Name", "lb_name"],
    "ward_no": ["Ward_No", "Ward No", "ward_no"],
    "ward_name": ["Ward_Name", "Ward Name", "ward_name"],
    "candidate": ["Candidate_Name", "Candidate Name", "candidate"],
    "party": ["Party"],
    "votes": ["Votes"],
    "status": ["Status"],
}


def rows_from_frame(df: pd.DataFrame) -> List[CandidateRow]:
    """Convert the raw trends table into CandidateRows (text cleaned, votes as ints)."""
    rows = []
    for rec in records(df, TREND_COLUMNS):
        rows.append(CandidateRow(
            lb_code=clean_text(rec["lb_code"]),
            ward_no=ward_key(rec["ward_no"]),
            candidate=clean_text(rec["candidate"]),
            party=clean_text(rec["party"]),
            votes=to_int(rec["votes"]),
            status=clean_text(rec["status"]),
            ward_name=clean_text(rec["ward_name"]),
            lb_name=clean_text(rec["lb_name"]),
            district=clean_text(rec["district"]),
        ))
    return rows


def leading_front(seats: Dict[str, int]) -> str:
    """LDF/UDF/NDA/IND when one bucket holds the most seats, Hung on a tie, N/A before any."""
    counts = {front: int(seats.get(front, 0)) for front in FRONTS}
    max_seats = max(counts.values())
    if max_seats == 0:
        return NOT_AVAILABLE
    leaders = [front for front in FRONTS if counts[front] == max_seats]
    return leaders[0] if len(leaders) == 1 else HUNG


def decide_ward(ward_no: str, ward_name: str, candidates: List[Candidate],
                leading: Optional[Candidate] = None) -> WardResult:
    # sorted() is stable, so equal counts keep feed order
    ranked = tuple(sorted(candidates, key=lambda c: c.votes, reverse=True))
    winner = ranked[0] if ranked and ranked[0].votes > 0 else None
    return WardResult(
        ward_no=ward_no,
        ward_name=ward_name,
        candidates=ranked,
        winner=winner,
        leading_hint=leading,
    )


class _WardDraft:
    __slots__ = ("name", "candidates", "leading")

    def __init__(self, name):
        self.name = name
        self.candidates = []
        self.leading = None


class _BodyDraft:
    __slots__ = ("name", "district", "wards")

    def __init__(self, name, district):
        self.name = name
        self.district = district
        self.wards = {}


def _finalize(code: str, draft: _BodyDraft) -> LocalBodyResult:
    wards = {}
    seats = empty_tally()
    declared = 0
    for ward_no, wd in draft.wards.items():
        result = decide_ward(ward_no, wd.name, wd.candidates, wd.leading)
        wards[ward_no] = result
        if result.winner is not None:
            declared += 1
            seats[seat_bucket(result.winner.front)] += 1
    return LocalBodyResult(
        lb_code=code,
        lb_name=draft.name,
        district=draft.district,
        wards=wards,
        seats=seats,
        wards_declared=declared,
        leading_front=leading_front(seats),
    )


def aggregate(rows: Iterable[CandidateRow],
              party_groups: Optional[PartyGroups] = None) -> Dict[str, LocalBodyResult]:
    """
    Group candidate rows by local body and ward and decide every ward.

    Rows without a local-body code are dropped; a row without a ward number
    is dropped after its local body has been registered. Duplicate candidate
    rows are kept as separate entries.
    """
    groups = party_groups if party_groups is not None else PartyGroups.empty()
    bodies: Dict[str, _BodyDraft] = {}
    skipped = 0

    for row in rows:
        code = clean_text(row.lb_code)
        if not code:
            skipped += 1
            continue

        body = bodies.get(code)
        if body is None:
            body = bodies[code] = _BodyDraft(clean_text(row.lb_name), clean_text(row.district))

        ward_no = ward_key(row.ward_no)
        if not ward_no:
            skipped += 1
            continue

        ward = body.wards.get(ward_no)
        if ward is None:
            ward = body.wards[ward_no] = _WardDraft(clean_text(row.ward_name))

        party = normalize_label(row.party)
        candidate = Candidate(
            name=clean_text(row.candidate),
            party=party,
            front=groups.resolve(party),
            votes=to_int(row.votes),
        )
        ward.candidates.append(candidate)

        if clean_text(row.status).lower() == LEADING_STATUS:
            ward.leading = candidate

    if skipped:
        logger.debug("Skipped %d trend rows without local body code or ward number", skipped)

    return {code: _finalize(code, draft) for code, draft in bodies.items()}
