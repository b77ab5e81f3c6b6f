"""Donor registration, listing, self-service lookup and moderation."""

from __future__ import annotations

import logging
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models import F, Q

from blood.exceptions import Conflict, NotFound
from blood.utils.identity import Caller, Identity
from blood.utils.phone import phone_digits
from donor.models import Donor

logger = logging.getLogger(__name__)

SORT_LAST_OLDEST = "lastOldest"
SORT_LAST_NEWEST = "lastNewest"
SORT_NAME = "name"


def register_donor(data: dict, caller: Caller) -> Donor:
    """Create a donor profile, optionally linked to the calling account.

    The account email wins over a body email. With an email present, a
    second profile for the same email is refused whatever its blood group.
    """

    email = (caller.email if caller.is_authenticated and caller.email else data.get("email") or "").strip().lower()

    if email:
        if Donor.objects.filter(email__iexact=email, blood_group=data["blood_group"]).exists():
            raise Conflict("A donor with this email and blood group is already registered")
        if Donor.objects.filter(email__iexact=email).exists():
            raise Conflict("A donor profile already exists for this email")

    fields = {key: value for key, value in data.items() if key in _WRITABLE_FIELDS}
    fields["email"] = email
    if caller.is_authenticated:
        fields["user"] = caller.user

    try:
        with transaction.atomic():
            donor = Donor.objects.create(**fields)
    except IntegrityError:
        # A concurrent registration won the unique (email, blood group) slot.
        raise Conflict("A donor with this email and blood group is already registered")
    logger.info("Registered donor %s (%s) for %s", donor.pk, donor.blood_group, email or "anonymous")
    return donor


def list_donors(
    *,
    blood_group: Optional[str] = None,
    gender: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    include_blocked: bool = False,
) -> List[Donor]:
    qs = Donor.objects.all()

    if blood_group:
        qs = qs.filter(blood_group=blood_group)
    if gender:
        qs = qs.filter(gender__iexact=gender.strip())
    if search:
        term = search.strip()
        qs = qs.filter(
            Q(name__icontains=term)
            | Q(area__icontains=term)
            | Q(district__icontains=term)
            | Q(upazila__icontains=term)
        )
    if not include_blocked:
        qs = qs.filter(is_blocked=False)

    if sort == SORT_LAST_OLDEST:
        qs = qs.order_by(F("last_donation").asc(nulls_first=True), "id")
    elif sort == SORT_LAST_NEWEST:
        qs = qs.order_by(F("last_donation").desc(nulls_last=True), "id")
    elif sort == SORT_NAME:
        qs = qs.order_by("name", "id")
    else:
        qs = qs.order_by("id")

    return list(qs)


def get_donor(pk) -> Donor:
    try:
        return Donor.objects.get(pk=pk)
    except Donor.DoesNotExist:
        raise NotFound("Donor not found")


def resolve_own_donor(caller: Identity) -> Donor:
    """Find the caller's donor profile: by email, then user id, then phone."""

    if caller.email:
        donor = Donor.objects.filter(email__iexact=caller.email).order_by("id").first()
        if donor:
            return donor

    donor = Donor.objects.filter(user_id=caller.user_id).order_by("id").first()
    if donor:
        return donor

    wanted = phone_digits(caller.phone)
    if wanted is not None:
        # Phones are stored as entered; compare every one numerically.
        for candidate in Donor.objects.exclude(phone="").order_by("id").iterator():
            if phone_digits(candidate.phone) == wanted:
                return candidate

    raise NotFound("Donor profile not found")


def update_donor_profile(donor: Donor, changes: dict) -> Donor:
    fields = [key for key in changes if key in _WRITABLE_FIELDS and key != "email"]
    for key in fields:
        setattr(donor, key, changes[key])
    if fields:
        donor.save(update_fields=fields)
        logger.info("Updated donor %s fields: %s", donor.pk, ", ".join(sorted(fields)))
    return donor


def block_donor(donor: Donor, admin: Identity) -> Donor:
    donor.block(blocked_by=admin.user_id)
    logger.info("Donor %s blocked by admin %s", donor.pk, admin.user_id)
    return donor


def unblock_donor(donor: Donor, admin: Identity) -> Donor:
    donor.unblock()
    logger.info("Donor %s unblocked by admin %s", donor.pk, admin.user_id)
    return donor


_WRITABLE_FIELDS = {
    "name",
    "blood_group",
    "gender",
    "phone",
    "email",
    "district",
    "upazila",
    "area",
    "address",
    "medical_conditions",
    "dob",
    "last_donation",
    "donations_count",
    "is_available",
    "visibility",
    "avatar",
}
