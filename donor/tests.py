import json
from datetime import timedelta
from unittest.mock import patch

from django.contrib.auth.models import User
from django.db.models.query import QuerySet
from django.test import TestCase, override_settings
from django.utils import timezone

from blood.models import AccountProfile
from donor import models as dmodels


def _donor(name='Rahim', blood_group='A+', **extra):
	fields = {
		'name': name,
		'gender': 'male',
		'district': 'Dhaka',
		'upazila': 'Mirpur',
		'area': 'Section 10',
		'blood_group': blood_group,
	}
	fields.update(extra)
	return dmodels.Donor.objects.create(**fields)


REGISTRATION = {
	'name': 'Rahim Mia',
	'bloodGroup': 'B+',
	'gender': 'male',
	'district': 'Sylhet',
	'upazila': 'Beanibazar',
	'area': 'Kashba',
	'phone': '01711000555',
}


class DonorAvailabilityTests(TestCase):
	def setUp(self):
		self.today = timezone.now().date()

	def test_manual_flag_wins(self):
		self.assertTrue(_donor(is_available=True).get_availability())
		self.assertFalse(_donor(is_available=False, last_donation=self.today - timedelta(days=400)).get_availability())

	def test_no_donation_on_record_is_unavailable(self):
		self.assertFalse(_donor().get_availability())

	def test_recovery_window_depends_on_gender(self):
		hundred_days_ago = self.today - timedelta(days=100)
		self.assertTrue(_donor(gender='male', last_donation=hundred_days_ago).get_availability())
		self.assertFalse(_donor(gender='Female', last_donation=hundred_days_ago).get_availability())
		self.assertTrue(_donor(gender='female', last_donation=self.today - timedelta(days=180)).get_availability())

	def test_boundary_day_counts_as_recovered(self):
		self.assertTrue(_donor(last_donation=self.today - timedelta(days=90)).get_availability())
		self.assertFalse(_donor(last_donation=self.today - timedelta(days=89)).get_availability())

	@override_settings(DONOR_RECOVERY_DAYS=30)
	def test_recovery_days_follow_settings(self):
		donor = _donor(last_donation=self.today - timedelta(days=45))
		self.assertTrue(donor.get_availability())
		self.assertEqual(donor.next_eligible_donation_date, self.today - timedelta(days=15))


class DonorRegistrationTests(TestCase):
	def post_json(self, body):
		return self.client.post('/api/donors', data=json.dumps(body), content_type='application/json')

	def test_anonymous_registration(self):
		response = self.post_json({**REGISTRATION, 'email': 'Rahim@Example.com'})
		self.assertEqual(response.status_code, 201, response.content)
		donor = response.json()['donor']
		self.assertEqual(donor['email'], 'rahim@example.com')
		self.assertIsNone(donor['userId'])
		self.assertEqual(donor['visibility'], 'public')
		self.assertEqual(donor['donationsCount'], 0)

	def test_missing_fields_are_listed(self):
		response = self.post_json({'name': 'No Group'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(
			response.json()['error'],
			'Missing required fields: bloodGroup, gender, district, upazila, area',
		)

	def test_duplicate_email_and_blood_group_conflicts(self):
		self.post_json({**REGISTRATION, 'email': 'dup@example.com'})
		response = self.post_json({**REGISTRATION, 'email': 'DUP@example.com'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'A donor with this email and blood group is already registered')
		self.assertEqual(dmodels.Donor.objects.count(), 1)

	def test_same_email_other_blood_group_also_conflicts(self):
		self.post_json({**REGISTRATION, 'email': 'dup@example.com'})
		response = self.post_json({**REGISTRATION, 'email': 'dup@example.com', 'bloodGroup': 'O+'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'A donor profile already exists for this email')

	def test_registrations_without_email_do_not_collide(self):
		self.assertEqual(self.post_json(REGISTRATION).status_code, 201)
		self.assertEqual(self.post_json(REGISTRATION).status_code, 201)

	def test_concurrent_duplicate_reported_as_conflict(self):
		self.post_json({**REGISTRATION, 'email': 'race@example.com'})
		# Both registrations passed the duplicate checks; the constraint decides.
		with patch.object(QuerySet, 'exists', return_value=False):
			response = self.post_json({**REGISTRATION, 'email': 'race@example.com'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'A donor with this email and blood group is already registered')
		self.assertEqual(dmodels.Donor.objects.filter(email='race@example.com').count(), 1)

	def test_authenticated_registration_uses_account_email(self):
		user = User.objects.create_user('member@example.com', 'member@example.com', 'secret12')
		self.client.force_login(user)
		response = self.post_json({**REGISTRATION, 'email': 'someone-else@example.com'})
		self.assertEqual(response.status_code, 201)
		donor = dmodels.Donor.objects.get(pk=response.json()['donor']['id'])
		self.assertEqual(donor.email, 'member@example.com')
		self.assertEqual(donor.user, user)


class DonorListingTests(TestCase):
	def setUp(self):
		today = timezone.now().date()
		self.recent = _donor('Zara', gender='female', area='Uttara', last_donation=today - timedelta(days=5))
		self.old = _donor('Babul', last_donation=today - timedelta(days=300))
		self.never = _donor('Chanchal', district='Khulna')
		self.other_group = _donor('Dipu', blood_group='O-')
		self.blocked = _donor('Emon', is_blocked=True)

	def ids(self, **params):
		response = self.client.get('/api/donors', params)
		self.assertEqual(response.status_code, 200)
		return [item['id'] for item in response.json()['donors']]

	def test_blocked_hidden_unless_requested(self):
		self.assertNotIn(self.blocked.pk, self.ids())
		self.assertIn(self.blocked.pk, self.ids(includeBlocked='true'))

	def test_filters(self):
		self.assertEqual(self.ids(bloodGroup='O-'), [self.other_group.pk])
		self.assertEqual(self.ids(gender='FEMALE'), [self.recent.pk])
		self.assertEqual(self.ids(search='khul'), [self.never.pk])
		self.assertEqual(self.ids(search='uttara'), [self.recent.pk])

	def test_sorting(self):
		self.assertEqual(self.ids(bloodGroup='A+', sort='lastOldest'), [self.never.pk, self.old.pk, self.recent.pk])
		self.assertEqual(self.ids(bloodGroup='A+', sort='lastNewest'), [self.recent.pk, self.old.pk, self.never.pk])
		self.assertEqual(self.ids(bloodGroup='A+', sort='name'), [self.old.pk, self.never.pk, self.recent.pk])
		self.assertEqual(self.ids(bloodGroup='A+'), [self.recent.pk, self.old.pk, self.never.pk])

	def test_detail(self):
		response = self.client.get(f'/api/donors/{self.old.pk}')
		self.assertEqual(response.json()['donor']['name'], 'Babul')
		self.assertEqual(self.client.get('/api/donors/9999').status_code, 404)


class DonorModerationTests(TestCase):
	def setUp(self):
		self.donor = _donor()
		self.admin = User.objects.create_superuser('admin@example.com', 'admin@example.com', 'secret12')
		self.member = User.objects.create_user('member@example.com', 'member@example.com', 'secret12')

	def test_block_requires_admin(self):
		url = f'/api/donors/{self.donor.pk}/block'
		self.assertEqual(self.client.patch(url).status_code, 401)
		self.client.force_login(self.member)
		self.assertEqual(self.client.patch(url).status_code, 403)
		self.donor.refresh_from_db()
		self.assertFalse(self.donor.is_blocked)

	def test_block_then_unblock_restores_state(self):
		self.client.force_login(self.admin)
		response = self.client.patch(f'/api/donors/{self.donor.pk}/block')
		self.assertEqual(response.status_code, 200)
		self.donor.refresh_from_db()
		self.assertTrue(self.donor.is_blocked)
		self.assertIsNotNone(self.donor.blocked_at)
		self.assertEqual(self.donor.blocked_by, str(self.admin.pk))

		self.client.patch(f'/api/donors/{self.donor.pk}/unblock')
		self.donor.refresh_from_db()
		self.assertFalse(self.donor.is_blocked)
		self.assertIsNone(self.donor.blocked_at)
		self.assertIsNone(self.donor.blocked_by)

	def test_admin_profile_update(self):
		body = json.dumps({'district': 'Rajshahi', 'isAvailable': False})
		self.client.force_login(self.member)
		self.assertEqual(self.client.put(f'/api/donors/{self.donor.pk}', data=body, content_type='application/json').status_code, 403)

		self.client.force_login(self.admin)
		response = self.client.put(f'/api/donors/{self.donor.pk}', data=body, content_type='application/json')
		self.assertEqual(response.status_code, 200)
		self.donor.refresh_from_db()
		self.assertEqual(self.donor.district, 'Rajshahi')
		self.assertIs(self.donor.is_available, False)
		self.assertEqual(self.donor.name, 'Rahim')


class OwnDonorProfileTests(TestCase):
	def setUp(self):
		self.user = User.objects.create_user('self@example.com', 'self@example.com', 'secret12')
		AccountProfile.objects.create(user=self.user, phone='8801711000666')

	def test_requires_login(self):
		self.assertEqual(self.client.get('/api/donors/me').status_code, 401)

	def test_resolves_by_email_before_user_and_phone(self):
		_donor('By Phone', phone='+880 1711-000666')
		_donor('By User', user=self.user)
		by_email = _donor('By Email', email='self@example.com')
		self.client.force_login(self.user)
		self.assertEqual(self.client.get('/api/donors/me').json()['donor']['id'], by_email.pk)

	def test_phone_with_separators_inside_last_digits_still_matches(self):
		mine = _donor('Spaced Phone', phone='+880 1711 00 06 66')
		self.client.force_login(self.user)
		response = self.client.get('/api/donors/me')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()['donor']['id'], mine.pk)

	def test_resolves_by_user_then_phone(self):
		by_phone = _donor('By Phone', phone='+880 1711-000666')
		self.client.force_login(self.user)
		self.assertEqual(self.client.get('/api/donors/me').json()['donor']['id'], by_phone.pk)

		by_user = _donor('By User', user=self.user)
		self.assertEqual(self.client.get('/api/donors/me').json()['donor']['id'], by_user.pk)

	def test_missing_profile(self):
		_donor('Stranger', phone='01999000111')
		self.client.force_login(self.user)
		response = self.client.get('/api/donors/me')
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.json()['error'], 'Donor profile not found')

	def test_partial_update_keeps_email(self):
		donor = _donor('Mine', email='self@example.com', area='Old Area')
		self.client.force_login(self.user)
		response = self.client.put(
			'/api/donors/me',
			data=json.dumps({'area': 'New Area', 'email': 'hijack@example.com', 'lastDonation': '2025-01-15'}),
			content_type='application/json',
		)
		self.assertEqual(response.status_code, 200)
		donor.refresh_from_db()
		self.assertEqual(donor.area, 'New Area')
		self.assertEqual(donor.email, 'self@example.com')
		self.assertEqual(str(donor.last_donation), '2025-01-15')
		self.assertEqual(donor.name, 'Mine')

	def test_blank_required_field_rejected(self):
		_donor('Mine', email='self@example.com')
		self.client.force_login(self.user)
		response = self.client.put('/api/donors/me', data=json.dumps({'name': ''}), content_type='application/json')
		self.assertEqual(response.status_code, 400)
		self.assertIn('name', response.json()['error'])
