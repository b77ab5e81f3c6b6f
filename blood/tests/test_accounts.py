import json
import os
from io import StringIO
from unittest.mock import patch

from django.contrib.auth.models import User
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase, override_settings

from blood.models import AccountProfile, Alert, BloodRequest
from blood.services import alerts as alert_service
from donor.models import Donor


class AccountApiTests(TestCase):
	def post_json(self, url, body):
		return self.client.post(url, data=json.dumps(body), content_type='application/json')

	def register(self, **overrides):
		body = {'name': 'Ayesha Rahman', 'email': 'Ayesha@Example.com', 'password': 'secret12', 'phone': '01711000333'}
		body.update(overrides)
		return self.post_json('/api/auth/register', body)

	def test_register_creates_account_and_logs_in(self):
		response = self.register()
		self.assertEqual(response.status_code, 201, response.content)
		user = response.json()['user']
		self.assertEqual(user['email'], 'ayesha@example.com')
		self.assertEqual(user['role'], 'user')
		self.assertEqual(user['phone'], '01711000333')
		self.assertEqual(AccountProfile.objects.get(user__email='ayesha@example.com').phone, '01711000333')

		me = self.client.get('/api/auth/me')
		self.assertEqual(me.status_code, 200)
		self.assertEqual(me.json()['user']['name'], 'Ayesha Rahman')

	def test_duplicate_email_conflicts(self):
		self.register()
		response = self.register(email='ayesha@example.com')
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'User already exists')

	def test_short_password_rejected(self):
		response = self.register(password='123')
		self.assertEqual(response.status_code, 400)
		self.assertIn('password', response.json()['error'])

	def test_session_cookie_is_same_site_lax_and_http_only(self):
		response = self.register()
		cookie = response.cookies['sessionid']
		self.assertEqual(cookie['samesite'], 'Lax')
		self.assertTrue(cookie['httponly'])

	def test_login_logout_cycle(self):
		self.register()
		self.post_json('/api/auth/logout', {})
		self.assertEqual(self.client.get('/api/auth/me').status_code, 401)

		bad = self.post_json('/api/auth/login', {'email': 'ayesha@example.com', 'password': 'wrong-one'})
		self.assertEqual(bad.status_code, 401)
		self.assertEqual(bad.json()['error'], 'Invalid credentials')

		good = self.post_json('/api/auth/login', {'email': 'AYESHA@example.com', 'password': 'secret12'})
		self.assertEqual(good.status_code, 200)
		self.assertEqual(self.client.get('/api/auth/me').status_code, 200)

	def test_profile_update(self):
		self.register()
		response = self.client.put(
			'/api/auth/profile',
			data=json.dumps({'name': 'Ayesha R.', 'phone': '01811000444'}),
			content_type='application/json',
		)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()['user']['name'], 'Ayesha R.')
		self.assertEqual(response.json()['user']['phone'], '01811000444')

	def test_staff_users_are_admins(self):
		admin = User.objects.create_superuser('root@example.com', 'root@example.com', 'secret12')
		self.client.force_login(admin)
		self.assertEqual(self.client.get('/api/auth/me').json()['user']['role'], 'admin')


class LivenessTests(TestCase):
	def test_health(self):
		response = self.client.get('/api/health')
		self.assertEqual(response.json(), {'success': True, 'ok': True})

	def test_root(self):
		self.assertEqual(self.client.get('/').json()['message'], 'API is running')

	def test_unknown_route_returns_json_404(self):
		response = self.client.get('/api/does-not-exist')
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.json(), {'success': False, 'error': 'Route not found'})


class ServerErrorEnvelopeTests(TestCase):
	def test_database_error_becomes_internal_envelope(self):
		with patch.object(alert_service, 'list_alerts', side_effect=DatabaseError('locked')):
			with self.assertLogs('blood.utils.api', level='ERROR'):
				response = self.client.get('/api/alerts')
		self.assertEqual(response.status_code, 500)
		self.assertEqual(response.json(), {'success': False, 'error': 'Database error occurred'})

	def test_unexpected_error_becomes_internal_envelope(self):
		with patch.object(alert_service, 'list_alerts', side_effect=RuntimeError('boom')):
			with self.assertLogs('blood.utils.api', level='ERROR'):
				response = self.client.get('/api/alerts')
		self.assertEqual(response.status_code, 500)
		self.assertEqual(response.json(), {'success': False, 'error': 'Internal Server Error'})


class ProvisionAdminCommandTests(TestCase):
	def test_creates_then_updates_admin(self):
		env = {'ADMIN_USERNAME': 'ops@example.com', 'ADMIN_PASSWORD': 'secret12', 'ADMIN_EMAIL': 'ops@example.com'}
		with patch.dict(os.environ, env):
			call_command('provision_admin', stdout=StringIO())
			user = User.objects.get(username='ops@example.com')
			self.assertTrue(user.is_superuser and user.is_staff)

			User.objects.filter(pk=user.pk).update(is_staff=False)
			out = StringIO()
			call_command('provision_admin', '--phone', '01711000999', stdout=out)
		self.assertIn('Updated admin user', out.getvalue())
		self.assertTrue(User.objects.get(pk=user.pk).is_staff)
		self.assertEqual(AccountProfile.objects.get(user=user).phone, '01711000999')

	def test_skips_without_credentials(self):
		with patch.dict(os.environ, {'ADMIN_USERNAME': '', 'ADMIN_PASSWORD': '', 'ADMIN_EMAIL': ''}):
			out = StringIO()
			call_command('provision_admin', stdout=out)
		self.assertIn('Skipping', out.getvalue())
		self.assertFalse(User.objects.exists())


@override_settings(ALERTS_USE_CELERY=False)
class SeedDemoDataCommandTests(TestCase):
	def test_seeds_donors_and_requests_through_lifecycle(self):
		call_command('seed_demo_data', '--donors', '6', '--requests', '3', '--seed', '7', stdout=StringIO())
		self.assertEqual(Donor.objects.count(), 6)
		self.assertEqual(BloodRequest.objects.count(), 3)
		self.assertEqual(Alert.objects.filter(user_id__isnull=True, type=Alert.TYPE_BLOOD_REQUEST).count(), 3)
		self.assertTrue(all(br.status == BloodRequest.STATUS_PENDING for br in BloodRequest.objects.all()))

	def test_purge_clears_previous_run(self):
		call_command('seed_demo_data', '--donors', '3', '--requests', '1', '--seed', '1', stdout=StringIO())
		call_command('seed_demo_data', '--donors', '2', '--requests', '0', '--purge', stdout=StringIO())
		self.assertEqual(Donor.objects.count(), 2)
		self.assertFalse(BloodRequest.objects.exists())
		self.assertFalse(Alert.objects.exists())
