import json
from datetime import timedelta
from unittest.mock import patch

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.utils import timezone

from blood.models import Alert, BloodRequest
from donor.models import Donor


def _donor(name, blood_group='A+', last_donation=None, **extra):
	fields = {
		'name': name,
		'gender': 'male',
		'district': 'Dhaka',
		'upazila': 'Mirpur',
		'area': 'Section 10',
		'blood_group': blood_group,
		'last_donation': last_donation,
	}
	fields.update(extra)
	return Donor.objects.create(**fields)


REQUEST_BODY = {
	'patientName': 'Karim Uddin',
	'age': 42,
	'bloodGroup': 'A+',
	'neededUnits': 2,
	'hospitalName': 'Dhaka Medical College Hospital',
	'hospitalAddress': 'Bakshibazar, Dhaka',
	'phone': '01711000111',
	'neededDate': '2025-03-01',
}


@override_settings(ALERTS_USE_CELERY=False)
class BloodRequestApiTestCase(TestCase):
	def post_json(self, url, body):
		return self.client.post(url, data=json.dumps(body), content_type='application/json')

	def send_json(self, method, url, body=None):
		return getattr(self.client, method)(url, data=json.dumps(body or {}), content_type='application/json')

	def create_request(self, **overrides):
		response = self.post_json('/api/blood-requests', {**REQUEST_BODY, **overrides})
		self.assertEqual(response.status_code, 201, response.content)
		return response.json()['bloodRequest']


class CreateBloodRequestTests(BloodRequestApiTestCase):
	def test_create_emits_broadcast_and_one_alert_per_matching_donor(self):
		first = _donor('Rahim')
		second = _donor('Salma', gender='female')
		_donor('Other Group', blood_group='B+')
		_donor('Close But Not Equal', blood_group='A-')

		created = self.create_request()

		self.assertEqual(created['status'], 'pending')
		self.assertEqual(created['emergencyLevel'], 'normal')
		self.assertEqual(created['neededTime'], '12:00')
		self.assertIsNone(created['createdBy'])

		alerts = Alert.objects.filter(related_id=str(created['id']))
		self.assertEqual(alerts.count(), 3)
		broadcast = alerts.get(user_id__isnull=True)
		self.assertEqual(broadcast.type, Alert.TYPE_BLOOD_REQUEST)
		self.assertEqual(broadcast.title, 'New Blood Request')
		self.assertIn('Karim Uddin', broadcast.message)
		self.assertEqual(
			set(alerts.filter(user_id__isnull=False).values_list('user_id', flat=True)),
			{str(first.pk), str(second.pk)},
		)

	def test_create_without_matching_donors_emits_only_broadcast(self):
		created = self.create_request(bloodGroup='AB-')
		self.assertEqual(Alert.objects.filter(related_id=str(created['id'])).count(), 1)

	def test_create_records_authenticated_owner(self):
		user = User.objects.create_user('owner@example.com', 'owner@example.com', 'secret12')
		self.client.force_login(user)
		created = self.create_request()
		self.assertEqual(created['createdBy'], str(user.pk))

	def test_missing_required_fields_are_rejected(self):
		response = self.post_json('/api/blood-requests', {'patientName': 'Only Name'})
		self.assertEqual(response.status_code, 400)
		body = response.json()
		self.assertFalse(body['success'])
		self.assertTrue(body['error'].startswith('Missing required fields'))
		self.assertIn('hospitalName', body['error'])
		self.assertFalse(BloodRequest.objects.exists())

	def test_age_out_of_range_is_rejected(self):
		response = self.post_json('/api/blood-requests', {**REQUEST_BODY, 'age': 151})
		self.assertEqual(response.status_code, 400)
		self.assertIn('age', response.json()['error'])

	def test_iso_timestamp_needed_date_is_accepted(self):
		created = self.create_request(neededDate='2025-03-01T00:00:00.000Z')
		self.assertEqual(created['neededDate'], '2025-03-01')

	def test_malformed_json_body(self):
		response = self.client.post('/api/blood-requests', data='{not json', content_type='application/json')
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'Malformed JSON body')


class ListAndDetailTests(BloodRequestApiTestCase):
	def test_list_filters_and_orders_newest_first(self):
		older = self.create_request(patientName='Older')
		newer = self.create_request(patientName='Newer')
		self.create_request(patientName='Other Group', bloodGroup='O-')

		response = self.client.get('/api/blood-requests', {'bloodGroup': 'A+', 'status': 'pending'})
		self.assertEqual(response.status_code, 200)
		ids = [item['id'] for item in response.json()['bloodRequests']]
		self.assertEqual(ids, [newer['id'], older['id']])

	def test_detail_and_missing(self):
		created = self.create_request()
		self.assertEqual(self.client.get(f"/api/blood-requests/{created['id']}").json()['bloodRequest']['patientName'], 'Karim Uddin')
		response = self.client.get('/api/blood-requests/9999')
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.json(), {'success': False, 'error': 'Blood request not found'})


class AcceptBloodRequestTests(BloodRequestApiTestCase):
	def test_accept_sets_accepted_by_and_emits_alert(self):
		created = self.create_request()
		response = self.send_json('patch', f"/api/blood-requests/{created['id']}/accept", {'donorName': 'Rahim'})
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()['bloodRequest']['status'], 'accepted')
		self.assertEqual(response.json()['bloodRequest']['acceptedBy'], 'Rahim')

		alert = Alert.objects.get(type=Alert.TYPE_DONOR_ACCEPTED)
		self.assertEqual(alert.related_id, str(created['id']))
		self.assertIsNone(alert.user_id)
		self.assertEqual(alert.message, 'Rahim has accepted your blood request')

	def test_accepted_by_falls_back_to_donor_id_then_anonymous(self):
		first = self.create_request()
		second = self.create_request()
		self.send_json('patch', f"/api/blood-requests/{first['id']}/accept", {'donorId': '17'})
		self.send_json('patch', f"/api/blood-requests/{second['id']}/accept")
		self.assertEqual(BloodRequest.objects.get(pk=first['id']).accepted_by, '17')
		self.assertEqual(BloodRequest.objects.get(pk=second['id']).accepted_by, 'Anonymous')

	def test_second_accept_conflicts_and_changes_nothing(self):
		created = self.create_request()
		url = f"/api/blood-requests/{created['id']}/accept"
		self.send_json('patch', url, {'donorName': 'First'})

		response = self.send_json('patch', url, {'donorName': 'Second'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'Request is already accepted or completed')

		blood_request = BloodRequest.objects.get(pk=created['id'])
		self.assertEqual(blood_request.status, BloodRequest.STATUS_ACCEPTED)
		self.assertEqual(blood_request.accepted_by, 'First')
		self.assertEqual(Alert.objects.filter(type=Alert.TYPE_DONOR_ACCEPTED).count(), 1)

	def test_completed_request_cannot_be_accepted(self):
		created = self.create_request()
		BloodRequest.objects.filter(pk=created['id']).update(status=BloodRequest.STATUS_COMPLETED)
		response = self.send_json('patch', f"/api/blood-requests/{created['id']}/accept", {'donorName': 'Late'})
		self.assertEqual(response.status_code, 400)
		self.assertIsNone(BloodRequest.objects.get(pk=created['id']).accepted_by)

	def test_losing_concurrent_accept_conflicts(self):
		created = self.create_request()
		stale = BloodRequest.objects.get(pk=created['id'])
		BloodRequest.objects.filter(pk=created['id']).update(status=BloodRequest.STATUS_ACCEPTED, accepted_by='Winner')

		# The loser loaded the row while it was still pending.
		with patch('blood.services.requests.get_blood_request', return_value=stale):
			response = self.send_json('patch', f"/api/blood-requests/{created['id']}/accept", {'donorName': 'Loser'})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'Request is already accepted or completed')
		self.assertEqual(BloodRequest.objects.get(pk=created['id']).accepted_by, 'Winner')
		self.assertFalse(Alert.objects.filter(type=Alert.TYPE_DONOR_ACCEPTED).exists())

	def test_accept_rejects_other_methods(self):
		created = self.create_request()
		response = self.client.get(f"/api/blood-requests/{created['id']}/accept")
		self.assertEqual(response.status_code, 405)
		self.assertFalse(response.json()['success'])


class ModifyBloodRequestTests(BloodRequestApiTestCase):
	def setUp(self):
		self.owner = User.objects.create_user('owner@example.com', 'owner@example.com', 'secret12')
		self.stranger = User.objects.create_user('stranger@example.com', 'stranger@example.com', 'secret12')
		self.admin = User.objects.create_superuser('admin@example.com', 'admin@example.com', 'secret12')
		self.client.force_login(self.owner)
		self.created = self.create_request()
		self.client.logout()
		self.url = f"/api/blood-requests/{self.created['id']}"

	def test_update_requires_authentication(self):
		response = self.send_json('put', self.url, {**REQUEST_BODY, 'neededUnits': 5})
		self.assertEqual(response.status_code, 401)

	def test_update_by_stranger_is_forbidden(self):
		self.client.force_login(self.stranger)
		response = self.send_json('put', self.url, {**REQUEST_BODY, 'neededUnits': 5})
		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.json()['error'], 'You can only edit your own requests')

	def test_owner_update_overwrites_fields_and_keeps_status(self):
		BloodRequest.objects.filter(pk=self.created['id']).update(status=BloodRequest.STATUS_ACCEPTED, accepted_by='Rahim')
		self.client.force_login(self.owner)
		response = self.send_json('put', self.url, {**REQUEST_BODY, 'neededUnits': 5, 'emergencyLevel': 'critical'})
		self.assertEqual(response.status_code, 200, response.content)
		updated = response.json()['bloodRequest']
		self.assertEqual(updated['neededUnits'], 5)
		self.assertEqual(updated['emergencyLevel'], 'critical')
		self.assertEqual(updated['status'], 'accepted')
		self.assertEqual(updated['acceptedBy'], 'Rahim')

	def test_admin_may_update_and_delete_any_request(self):
		self.client.force_login(self.admin)
		self.assertEqual(self.send_json('put', self.url, {**REQUEST_BODY, 'age': 43}).status_code, 200)
		self.assertEqual(self.client.delete(self.url).status_code, 200)
		self.assertFalse(BloodRequest.objects.filter(pk=self.created['id']).exists())

	def test_delete_by_stranger_is_forbidden_and_owner_delete_leaves_alerts(self):
		self.client.force_login(self.stranger)
		response = self.client.delete(self.url)
		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.json()['error'], 'You can only delete your own requests')

		self.client.force_login(self.owner)
		self.assertEqual(self.client.delete(self.url).status_code, 200)
		self.assertTrue(Alert.objects.filter(related_id=str(self.created['id'])).exists())

	def test_status_patch_moves_in_any_direction(self):
		response = self.send_json('patch', self.url, {'status': 'completed'})
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()['bloodRequest']['status'], 'completed')

		response = self.send_json('patch', self.url, {'status': 'pending'})
		self.assertEqual(response.json()['bloodRequest']['status'], 'pending')

	def test_status_patch_rejects_unknown_value(self):
		response = self.send_json('patch', self.url, {'status': 'cancelled'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'Invalid status')


class MatchDonorsTests(BloodRequestApiTestCase):
	def test_match_is_capped_and_orders_never_donated_first(self):
		today = timezone.now().date()
		for index in range(11):
			_donor(f'Donor {index}', last_donation=today - timedelta(days=10 + index * 20))
		never = _donor('Never Donated')
		blocked = _donor('Blocked', last_donation=today - timedelta(days=1000), is_blocked=True)
		_donor('Other Group', blood_group='B+')
		created = self.create_request()

		response = self.client.get(f"/api/blood-requests/{created['id']}/match")
		self.assertEqual(response.status_code, 200)
		donors = response.json()['donors']

		self.assertEqual(len(donors), 10)
		self.assertEqual(donors[0]['id'], never.pk)
		self.assertIn('No donation on record', donors[0]['matchNotes'])
		self.assertEqual(donors[1]['id'], blocked.pk)
		self.assertIn('Donor is blocked', donors[1]['matchNotes'])
		self.assertIs(donors[0]['availability'], False)
		self.assertIsNone(donors[0]['nextEligibleDate'])
		self.assertIs(donors[1]['availability'], True)
		self.assertEqual(donors[1]['nextEligibleDate'], str(today - timedelta(days=1000 - 90)))
		self.assertTrue(all(item['bloodGroup'] == 'A+' for item in donors))
		dates = [item['lastDonation'] for item in donors[1:]]
		self.assertEqual(dates, sorted(dates))

	@override_settings(DONOR_MATCH_LIMIT=2)
	def test_match_limit_follows_settings(self):
		for index in range(4):
			_donor(f'Donor {index}')
		created = self.create_request()
		self.assertEqual(self.client.get(f"/api/blood-requests/{created['id']}/match").json()['count'], 2)
