"""In-app alert helpers for blood request events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from blood.exceptions import NotFound
from blood.models import Alert, BloodRequest
from donor.models import Donor


logger = logging.getLogger(__name__)


@dataclass
class AlertResult:
	"""Lightweight summary of an alert fan-out attempt."""

	broadcast: int
	delivered: int
	recipients: List[str] = field(default_factory=list)
	queued: bool = False
	reason: Optional[str] = None


def emit_new_request_alerts(blood_request: BloodRequest) -> AlertResult:
	"""Write one broadcast alert plus one per donor of the same blood group."""

	related_id = str(blood_request.pk)
	Alert.objects.create(
		type=Alert.TYPE_BLOOD_REQUEST,
		title="New Blood Request",
		message=_build_broadcast_message(blood_request),
		related_id=related_id,
	)

	recipients: List[str] = []
	donor_message = f"A patient needs {blood_request.blood_group} blood. You can help!"
	for donor_id in _matching_donor_ids(blood_request):
		Alert.objects.create(
			type=Alert.TYPE_BLOOD_REQUEST,
			title="Blood Request Match",
			message=donor_message,
			related_id=related_id,
			user_id=str(donor_id),
		)
		recipients.append(str(donor_id))

	logger.info(
		"Blood request %s (%s): 1 broadcast alert, %s donor alerts",
		blood_request.pk,
		blood_request.blood_group,
		len(recipients),
	)
	return AlertResult(broadcast=1, delivered=len(recipients), recipients=recipients)


def dispatch_new_request_alerts(blood_request: BloodRequest) -> AlertResult:
	"""Fan out new-request alerts inline, or queue them when Celery is enabled.

	The request row is already committed; a failure here is logged and the
	request stands without (some of) its alerts.
	"""

	if settings.ALERTS_USE_CELERY:
		from blood import tasks

		try:
			tasks.send_new_request_alerts.delay(blood_request.pk)
		except Exception as exc:  # broker unavailable
			logger.error("Failed to queue alerts for blood request %s: %s", blood_request.pk, exc)
			return AlertResult(0, 0, reason="queue-failed")
		return AlertResult(0, 0, queued=True)

	try:
		with transaction.atomic():
			return emit_new_request_alerts(blood_request)
	except DatabaseError as exc:
		logger.error("Failed to write alerts for blood request %s: %s", blood_request.pk, exc)
		return AlertResult(0, 0, reason="write-failed")


def emit_request_accepted_alert(blood_request: BloodRequest) -> Optional[Alert]:
	try:
		with transaction.atomic():
			alert = Alert.objects.create(
				type=Alert.TYPE_DONOR_ACCEPTED,
				title="Request Accepted",
				message=f"{blood_request.accepted_by} has accepted your blood request",
				related_id=str(blood_request.pk),
			)
	except DatabaseError as exc:
		logger.error("Failed to write acceptance alert for blood request %s: %s", blood_request.pk, exc)
		return None
	return alert


def emit_system_alert(title: str, message: str, *, user_id: Optional[str] = None, related_id: Optional[str] = None) -> Alert:
	alert = Alert.objects.create(
		type=Alert.TYPE_SYSTEM,
		title=title.strip(),
		message=message.strip(),
		user_id=user_id or None,
		related_id=related_id or None,
	)
	logger.info("System alert %s emitted to %s", alert.pk, user_id or "everyone")
	return alert


def list_alerts(*, user_id: Optional[str] = None, alert_type: Optional[str] = None, is_read: Optional[bool] = None):
	qs = Alert.objects.all()
	if user_id:
		qs = qs.filter(user_id=user_id)
	if alert_type:
		qs = qs.filter(type=alert_type)
	if is_read is not None:
		qs = qs.filter(is_read=is_read)
	return list(qs.order_by("-created_at", "-id"))


def mark_alert_read(pk) -> Alert:
	try:
		alert = Alert.objects.get(pk=pk)
	except Alert.DoesNotExist:
		raise NotFound("Alert not found")
	alert.is_read = True
	alert.save(update_fields=["is_read", "updated_at"])
	return alert


def mark_all_alerts_read(user_id: Optional[str] = None) -> int:
	"""Flip unread alerts to read, scoped to one recipient when given.

	Only unread rows are touched, so repeating the call reports 0.
	"""

	qs = Alert.objects.filter(is_read=False)
	if user_id:
		qs = qs.filter(user_id=user_id)
	return qs.update(is_read=True, updated_at=timezone.now())


def _matching_donor_ids(blood_request: BloodRequest):
	return Donor.objects.filter(blood_group=blood_request.blood_group).order_by("id").values_list("id", flat=True)


def _build_broadcast_message(blood_request: BloodRequest) -> str:
	return (
		f"{blood_request.patient_name} needs {blood_request.blood_group} blood "
		f"at {blood_request.hospital_name}"
	)
