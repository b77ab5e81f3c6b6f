import json

from django.test import TestCase

from patient.models import Patient


PATIENT = {
	'firstName': 'Nadia',
	'lastName': 'Islam',
	'email': 'Nadia@Example.com',
	'phone': '01711000777',
	'dateOfBirth': '1990-05-20',
	'gender': 'female',
	'eventInterest': 'DecentMed Summit',
}


class PatientApiTests(TestCase):
	def post_json(self, body):
		return self.client.post('/api/patients', data=json.dumps(body), content_type='application/json')

	def test_register_normalises_email_and_defaults_country(self):
		response = self.post_json(PATIENT)
		self.assertEqual(response.status_code, 201, response.content)
		patient = response.json()['patient']
		self.assertEqual(patient['email'], 'nadia@example.com')
		self.assertEqual(patient['country'], 'USA')
		self.assertEqual(patient['dateOfBirth'], '1990-05-20')

	def test_missing_required_fields(self):
		response = self.post_json({'firstName': 'Only'})
		self.assertEqual(response.status_code, 400)
		self.assertTrue(response.json()['error'].startswith('Missing required fields: lastName, email'))

	def test_duplicate_email_conflicts(self):
		self.post_json(PATIENT)
		response = self.post_json({**PATIENT, 'email': 'NADIA@example.com', 'firstName': 'Other'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'A patient with this email already exists.')
		self.assertEqual(Patient.objects.count(), 1)

	def test_list_search_filter_and_sort(self):
		self.post_json(PATIENT)
		self.post_json({**PATIENT, 'firstName': 'Arif', 'lastName': 'Ahmed', 'email': 'arif@example.com', 'eventInterest': ''})
		self.post_json({**PATIENT, 'firstName': 'Mitu', 'lastName': 'Islam', 'email': 'mitu@example.com'})

		everyone = self.client.get('/api/patients', {'sort': 'name'}).json()
		self.assertEqual(everyone['count'], 3)
		self.assertEqual([p['firstName'] for p in everyone['patients']], ['Arif', 'Mitu', 'Nadia'])

		newest = self.client.get('/api/patients', {'sort': 'newest'}).json()['patients']
		self.assertEqual(newest[0]['firstName'], 'Mitu')

		summit = self.client.get('/api/patients', {'eventInterest': 'DecentMed Summit'}).json()
		self.assertEqual(summit['count'], 2)

		found = self.client.get('/api/patients', {'search': 'ARIF@'}).json()
		self.assertEqual([p['firstName'] for p in found['patients']], ['Arif'])

	def test_detail(self):
		created = self.post_json(PATIENT).json()['patient']
		self.assertEqual(self.client.get(f"/api/patients/{created['id']}").json()['patient']['lastName'], 'Islam')
		missing = self.client.get('/api/patients/9999')
		self.assertEqual(missing.status_code, 404)
		self.assertEqual(missing.json()['error'], 'Patient not found')
