import logging

from celery import shared_task

from blood import models
from blood.services import alerts as alert_service


logger = logging.getLogger(__name__)


# No autoretry: each alert write is attempted once.
@shared_task(bind=True)
def send_new_request_alerts(self, blood_request_id: int) -> dict:
    blood_request = models.BloodRequest.objects.filter(pk=blood_request_id).first()
    if blood_request is None:
        logger.warning("Blood request %s vanished before its alerts were sent", blood_request_id)
        return {'broadcast': 0, 'delivered': 0}
    result = alert_service.emit_new_request_alerts(blood_request)
    return {'broadcast': result.broadcast, 'delivered': result.delivered}
