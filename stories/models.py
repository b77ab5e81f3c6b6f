from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from blood.models import BLOOD_GROUP_CHOICES


class SuccessStory(models.Model):
    name = models.CharField(max_length=150)
    location = models.CharField(max_length=150)
    story = models.TextField()
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, blank=True)
    rating = models.PositiveSmallIntegerField(default=5, validators=[MinValueValidator(1), MaxValueValidator(5)])

    # Owner details are copied at creation time.
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='success_stories')
    user_name = models.CharField(max_length=150, blank=True)
    user_email = models.EmailField(blank=True)
    user_phone = models.CharField(max_length=30, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'success stories'

    def __str__(self):
        return f"{self.name} ({self.location})"

    def is_owned_by(self, caller) -> bool:
        return caller.is_authenticated and str(self.user_id) == caller.user_id

    def reaction_counts(self):
        counts = {reaction_type: 0 for reaction_type, _ in StoryReaction.TYPE_CHOICES}
        for reaction in self.reactions.all():
            counts[reaction.reaction_type] = counts.get(reaction.reaction_type, 0) + 1
        return counts

    def to_dict(self):
        return {
            'id': self.pk,
            'name': self.name,
            'location': self.location,
            'story': self.story,
            'bloodGroup': self.blood_group,
            'rating': self.rating,
            'userId': str(self.user_id),
            'userName': self.user_name,
            'userEmail': self.user_email,
            'userPhone': self.user_phone,
            'reactions': self.reaction_counts(),
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


class StoryReaction(models.Model):
    TYPE_CHOICES = [
        ('like', 'Like'),
        ('love', 'Love'),
        ('care', 'Care'),
        ('haha', 'Haha'),
        ('wow', 'Wow'),
        ('sad', 'Sad'),
        ('angry', 'Angry'),
    ]

    story = models.ForeignKey(SuccessStory, on_delete=models.CASCADE, related_name='reactions')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='story_reactions')
    reaction_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['story', 'user'], name='unique_story_reaction_per_user'),
        ]

    def __str__(self):
        return f"{self.user_id} {self.reaction_type} story {self.story_id}"
