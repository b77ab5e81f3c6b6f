import json
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase, override_settings

from blood import tasks
from blood.models import Alert, BloodRequest
from blood.services import alerts as alert_service
from donor.models import Donor


def _alert(user_id=None, is_read=False, title='Heads up'):
	return Alert.objects.create(type=Alert.TYPE_SYSTEM, title=title, message='Body', user_id=user_id, is_read=is_read)


def _blood_request(blood_group='O-'):
	return BloodRequest.objects.create(
		patient_name='Nasima',
		age=30,
		blood_group=blood_group,
		hospital_name='Square Hospital',
		hospital_address='Panthapath, Dhaka',
		phone='01711000222',
		needed_date='2025-04-10',
	)


class MarkReadTests(TestCase):
	def patch_json(self, url, body=None):
		return self.client.patch(url, data=json.dumps(body or {}), content_type='application/json')

	def test_read_all_is_scoped_to_user_and_idempotent(self):
		mine = [_alert('u1'), _alert('u1')]
		theirs = _alert('u2')
		broadcast = _alert(None)

		response = self.patch_json('/api/alerts/read-all', {'userId': 'u1'})
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()['updated'], 2)
		for alert in mine:
			alert.refresh_from_db()
			self.assertTrue(alert.is_read)
		theirs.refresh_from_db()
		broadcast.refresh_from_db()
		self.assertFalse(theirs.is_read)
		self.assertFalse(broadcast.is_read)

		self.assertEqual(self.patch_json('/api/alerts/read-all', {'userId': 'u1'}).json()['updated'], 0)

	def test_read_all_without_user_touches_every_unread_alert(self):
		_alert('u1')
		_alert(None)
		_alert('u2', is_read=True)
		self.assertEqual(alert_service.mark_all_alerts_read(), 2)
		self.assertFalse(Alert.objects.filter(is_read=False).exists())

	def test_mark_single_alert_read(self):
		alert = _alert('u1')
		response = self.patch_json(f'/api/alerts/{alert.pk}/read')
		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.json()['alert']['isRead'])
		self.assertEqual(self.patch_json('/api/alerts/9999/read').status_code, 404)


class ListAlertTests(TestCase):
	def test_filters_by_user_type_and_read_state(self):
		_alert('u1', title='first')
		_alert('u1', is_read=True, title='read')
		_alert('u2', title='other')
		Alert.objects.create(type=Alert.TYPE_BLOOD_REQUEST, title='request', message='m', user_id='u1')

		response = self.client.get('/api/alerts', {'userId': 'u1', 'type': 'system', 'isRead': 'false'})
		self.assertEqual(response.status_code, 200)
		self.assertEqual([item['title'] for item in response.json()['alerts']], ['first'])

	def test_newest_first(self):
		first = _alert(title='first')
		second = _alert(title='second')
		ids = [item['id'] for item in self.client.get('/api/alerts').json()['alerts']]
		self.assertEqual(ids, [second.pk, first.pk])


class AlertDispatchTests(TestCase):
	@override_settings(ALERTS_USE_CELERY=True)
	def test_fan_out_is_queued_when_celery_enabled(self):
		blood_request = _blood_request()
		with patch.object(tasks.send_new_request_alerts, 'delay') as delay:
			result = alert_service.dispatch_new_request_alerts(blood_request)
		delay.assert_called_once_with(blood_request.pk)
		self.assertTrue(result.queued)
		self.assertFalse(Alert.objects.exists())

	@override_settings(ALERTS_USE_CELERY=True)
	def test_queue_failure_is_tolerated(self):
		blood_request = _blood_request()
		with patch.object(tasks.send_new_request_alerts, 'delay', side_effect=OSError('broker down')):
			result = alert_service.dispatch_new_request_alerts(blood_request)
		self.assertEqual(result.reason, 'queue-failed')

	@override_settings(ALERTS_USE_CELERY=False)
	def test_write_failure_keeps_the_request(self):
		body = {
			'patientName': 'Nasima',
			'age': 30,
			'bloodGroup': 'O-',
			'neededUnits': 1,
			'hospitalName': 'Square Hospital',
			'hospitalAddress': 'Panthapath, Dhaka',
			'phone': '01711000222',
			'neededDate': '2025-04-10',
		}
		with patch.object(alert_service, 'emit_new_request_alerts', side_effect=DatabaseError('disk full')):
			with self.assertLogs('blood.services.alerts', level='ERROR'):
				response = self.client.post('/api/blood-requests', data=json.dumps(body), content_type='application/json')
		self.assertEqual(response.status_code, 201)
		self.assertTrue(BloodRequest.objects.filter(pk=response.json()['bloodRequest']['id']).exists())
		self.assertFalse(Alert.objects.exists())

	def test_task_emits_alerts_for_existing_request(self):
		Donor.objects.create(name='Rahim', gender='male', district='Dhaka', upazila='Mirpur', area='10', blood_group='O-')
		blood_request = _blood_request()
		self.assertEqual(tasks.send_new_request_alerts(blood_request.pk), {'broadcast': 1, 'delivered': 1})
		self.assertEqual(Alert.objects.filter(related_id=str(blood_request.pk)).count(), 2)

	def test_task_ignores_missing_request(self):
		with self.assertLogs('blood.tasks', level='WARNING'):
			self.assertEqual(tasks.send_new_request_alerts(424242), {'broadcast': 0, 'delivered': 0})


class SendSystemAlertCommandTests(TestCase):
	def test_broadcast_and_targeted(self):
		call_command('send_system_alert', '--title', 'Maintenance', '--message', 'Back at 5pm', stdout=StringIO())
		call_command('send_system_alert', '--title', 'Hi', '--message', 'Just you', '--user', 'u7', stdout=StringIO())

		broadcast = Alert.objects.get(title='Maintenance')
		self.assertEqual(broadcast.type, Alert.TYPE_SYSTEM)
		self.assertIsNone(broadcast.user_id)
		self.assertEqual(Alert.objects.get(title='Hi').user_id, 'u7')
