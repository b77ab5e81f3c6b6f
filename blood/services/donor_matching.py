from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from django.conf import settings
from django.db.models import F
from django.utils import timezone

from blood import models as bmodels
from donor import models as dmodels


@dataclass(frozen=True)
class DonorCandidate:
    donor: dmodels.Donor
    available: bool
    next_eligible_date: Optional[date]
    notes: Tuple[str, ...]

    def as_dict(self):
        data = self.donor.to_dict()
        data["availability"] = self.available
        data["nextEligibleDate"] = self.next_eligible_date
        data["matchNotes"] = list(self.notes)
        return data


def _get_match_limit() -> int:
    return int(getattr(settings, "DONOR_MATCH_LIMIT", 10))


def _candidate_notes(donor: dmodels.Donor, today: date) -> Tuple[str, ...]:
    # Informational only: none of these remove a donor from the match list.
    notes: List[str] = []
    if donor.is_blocked:
        notes.append("Donor is blocked")
    if donor.is_available is False:
        notes.append("Donor is marked unavailable")
    next_eligible = donor.next_eligible_donation_date
    if next_eligible and today < next_eligible:
        notes.append(f"Still in recovery window until {next_eligible}")
    if donor.last_donation is None:
        notes.append("No donation on record")
    return tuple(notes)


def match_donors_for_request(
    blood_request: bmodels.BloodRequest,
    *,
    limit: Optional[int] = None,
) -> List[DonorCandidate]:
    """Donors of the request's exact blood group, longest-since-donation first.

    Donors who never donated sort ahead of everyone else. Blocked, unavailable
    and still-recovering donors are kept; their notes say so.
    """

    limit = _get_match_limit() if limit is None else limit
    candidates = (
        dmodels.Donor.objects.filter(blood_group=blood_request.blood_group)
        .order_by(F("last_donation").asc(nulls_first=True), "id")[: max(1, int(limit))]
    )

    today = timezone.now().date()
    return [
        DonorCandidate(
            donor=donor,
            available=donor.get_availability(),
            next_eligible_date=donor.next_eligible_donation_date,
            notes=_candidate_notes(donor, today),
        )
        for donor in candidates
    ]
