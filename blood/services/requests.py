"""Blood request lifecycle: pending -> accepted -> completed."""

from __future__ import annotations

import logging
from typing import List, Optional

from django.utils import timezone

from blood.exceptions import Conflict, Forbidden, NotFound, ValidationError
from blood.models import BloodRequest
from blood.services import alerts as alert_service
from blood.utils.identity import Caller, Identity

logger = logging.getLogger(__name__)

VALID_STATUSES = {value for value, _ in BloodRequest.STATUS_CHOICES}


def get_blood_request(pk) -> BloodRequest:
    try:
        return BloodRequest.objects.get(pk=pk)
    except BloodRequest.DoesNotExist:
        raise NotFound("Blood request not found")


def list_blood_requests(*, status: Optional[str] = None, blood_group: Optional[str] = None) -> List[BloodRequest]:
    qs = BloodRequest.objects.all()
    if status:
        qs = qs.filter(status=status)
    if blood_group:
        qs = qs.filter(blood_group=blood_group)
    return list(qs.order_by("-created_at", "-id"))


def create_blood_request(data: dict, caller: Caller) -> BloodRequest:
    """Persist a pending request, then fan out alerts.

    The two steps are independent writes; alerts that fail to land do not
    undo the request.
    """

    blood_request = BloodRequest.objects.create(
        **data,
        status=BloodRequest.STATUS_PENDING,
        created_by=caller.user if caller.is_authenticated else None,
    )
    logger.info(
        "Blood request %s created for %s (%s, %s unit(s)) by %s",
        blood_request.pk,
        blood_request.patient_name,
        blood_request.blood_group,
        blood_request.needed_units,
        caller.user_id or "anonymous",
    )

    alert_service.dispatch_new_request_alerts(blood_request)
    return blood_request


def accept_blood_request(pk, *, donor_id: Optional[str] = None, donor_name: Optional[str] = None) -> BloodRequest:
    blood_request = get_blood_request(pk)
    if blood_request.status != BloodRequest.STATUS_PENDING:
        raise Conflict("Request is already accepted or completed")

    accepted_by = donor_name or donor_id or "Anonymous"
    # Conditional update: of two concurrent accepts only one matches 'pending'.
    updated = BloodRequest.objects.filter(pk=blood_request.pk, status=BloodRequest.STATUS_PENDING).update(
        status=BloodRequest.STATUS_ACCEPTED,
        accepted_by=accepted_by,
        updated_at=timezone.now(),
    )
    if not updated:
        raise Conflict("Request is already accepted or completed")

    blood_request.refresh_from_db()
    logger.info("Blood request %s accepted by %s", blood_request.pk, accepted_by)
    alert_service.emit_request_accepted_alert(blood_request)
    return blood_request


def ensure_can_modify(blood_request: BloodRequest, caller: Identity, action: str = "edit") -> None:
    if caller.is_admin or blood_request.is_owned_by(caller):
        return
    raise Forbidden(f"You can only {action} your own requests")


def update_blood_request(blood_request: BloodRequest, data: dict) -> BloodRequest:
    """Overwrite every request field; status and acceptance are left alone."""

    for key, value in data.items():
        setattr(blood_request, key, value)
    blood_request.save()
    logger.info("Blood request %s updated (status %s)", blood_request.pk, blood_request.status)
    return blood_request


def set_blood_request_status(pk, status: Optional[str]) -> BloodRequest:
    """Administrative override: any status, in any direction."""

    if status not in VALID_STATUSES:
        raise ValidationError("Invalid status")

    blood_request = get_blood_request(pk)
    previous = blood_request.status
    blood_request.status = status
    blood_request.save(update_fields=["status", "updated_at"])
    logger.info("Blood request %s status overridden: %s -> %s", blood_request.pk, previous, status)
    return blood_request


def delete_blood_request(blood_request: BloodRequest) -> None:
    pk = blood_request.pk
    blood_request.delete()
    # Alerts keep their related_id; nothing cascades.
    logger.info("Blood request %s deleted", pk)
