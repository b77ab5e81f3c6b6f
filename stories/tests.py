import json

from django.contrib.auth.models import User
from django.test import TestCase

from blood.models import AccountProfile
from stories.models import StoryReaction, SuccessStory


STORY = {'name': 'Karim', 'location': 'Dhaka', 'story': 'A stranger saved my father.', 'bloodGroup': 'O+'}


class SuccessStoryTests(TestCase):
	def setUp(self):
		self.author = User.objects.create_user('author@example.com', 'author@example.com', 'secret12', first_name='Karim Author')
		AccountProfile.objects.create(user=self.author, phone='01711000888')
		self.reader = User.objects.create_user('reader@example.com', 'reader@example.com', 'secret12')
		self.admin = User.objects.create_superuser('admin@example.com', 'admin@example.com', 'secret12')

	def send_json(self, method, url, body):
		return getattr(self.client, method)(url, data=json.dumps(body), content_type='application/json')

	def create_story(self):
		self.client.force_login(self.author)
		response = self.send_json('post', '/api/success-stories', STORY)
		self.assertEqual(response.status_code, 201, response.content)
		self.client.logout()
		return response.json()['story']

	def test_create_requires_login_and_copies_owner_details(self):
		self.assertEqual(self.send_json('post', '/api/success-stories', STORY).status_code, 401)

		story = self.create_story()
		self.assertEqual(story['userId'], str(self.author.pk))
		self.assertEqual(story['userName'], 'Karim Author')
		self.assertEqual(story['userEmail'], 'author@example.com')
		self.assertEqual(story['userPhone'], '01711000888')
		self.assertEqual(story['rating'], 5)
		self.assertEqual(story['reactions']['love'], 0)

	def test_list_is_public_and_newest_first(self):
		first = self.create_story()
		second = self.create_story()
		ids = [item['id'] for item in self.client.get('/api/success-stories').json()['stories']]
		self.assertEqual(ids, [second['id'], first['id']])

	def test_only_owner_may_edit(self):
		story = self.create_story()
		url = f"/api/success-stories/{story['id']}"

		self.client.force_login(self.admin)
		self.assertEqual(self.send_json('put', url, {'story': 'Rewritten'}).status_code, 403)

		self.client.force_login(self.author)
		response = self.send_json('put', url, {'story': 'Rewritten', 'rating': 1})
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()['story']['story'], 'Rewritten')
		self.assertEqual(response.json()['story']['location'], 'Dhaka')
		self.assertEqual(response.json()['story']['rating'], 5)

	def test_owner_or_admin_may_delete(self):
		story = self.create_story()
		url = f"/api/success-stories/{story['id']}"

		self.client.force_login(self.reader)
		self.assertEqual(self.client.delete(url).status_code, 403)

		self.client.force_login(self.admin)
		self.assertEqual(self.client.delete(url).status_code, 200)
		self.assertFalse(SuccessStory.objects.exists())

	def test_reaction_toggles_and_replaces(self):
		story = self.create_story()
		url = f"/api/success-stories/{story['id']}/react"
		self.client.force_login(self.reader)

		added = self.send_json('post', url, {'reactionType': 'love'})
		self.assertEqual(added.json()['message'], 'Reaction added')
		self.assertEqual(added.json()['story']['reactions']['love'], 1)

		changed = self.send_json('post', url, {'reactionType': 'wow'})
		self.assertEqual(changed.json()['message'], 'Reaction updated')
		self.assertEqual(changed.json()['story']['reactions']['love'], 0)
		self.assertEqual(changed.json()['story']['reactions']['wow'], 1)
		self.assertEqual(StoryReaction.objects.filter(user=self.reader).count(), 1)

		removed = self.send_json('post', url, {'reactionType': 'wow'})
		self.assertEqual(removed.json()['message'], 'Reaction removed')
		self.assertFalse(StoryReaction.objects.exists())

	def test_invalid_reaction(self):
		story = self.create_story()
		self.client.force_login(self.reader)
		response = self.send_json('post', f"/api/success-stories/{story['id']}/react", {'reactionType': 'meh'})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['error'], 'Invalid reaction type')

	def test_missing_story(self):
		self.client.force_login(self.reader)
		response = self.send_json('post', '/api/success-stories/9999/react', {'reactionType': 'like'})
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.json()['error'], 'Story not found')
