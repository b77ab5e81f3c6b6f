import logging

from django.db import transaction

from blood.exceptions import Forbidden, NotFound
from .models import StoryReaction, SuccessStory

logger = logging.getLogger(__name__)

REACTION_ADDED = 'added'
REACTION_CHANGED = 'changed'
REACTION_REMOVED = 'removed'


def list_stories():
    return list(SuccessStory.objects.prefetch_related('reactions').order_by('-created_at', '-id'))


def get_story(pk) -> SuccessStory:
    try:
        return SuccessStory.objects.get(pk=pk)
    except SuccessStory.DoesNotExist:
        raise NotFound('Story not found')


def create_story(data, caller) -> SuccessStory:
    story = SuccessStory.objects.create(
        **data,
        user=caller.user,
        user_name=caller.name,
        user_email=caller.email,
        user_phone=caller.phone,
    )
    logger.info("Success story %s created by %s", story.pk, caller.user_id)
    return story


def update_story(story, changes, caller) -> SuccessStory:
    # Owner only; admins do not edit other people's stories.
    if not story.is_owned_by(caller):
        raise Forbidden('You can only edit your own stories')
    for key, value in changes.items():
        setattr(story, key, value)
    story.save()
    return story


def delete_story(story, caller) -> None:
    if not (caller.is_admin or story.is_owned_by(caller)):
        raise Forbidden('Unauthorized. You can only delete your own stories.')
    pk = story.pk
    story.delete()
    logger.info("Success story %s deleted by %s", pk, caller.user_id)


def toggle_reaction(story, caller, reaction_type) -> str:
    """Add, replace or remove the caller's single reaction on a story.

    Reacting again with the same type removes the reaction.
    """

    with transaction.atomic():
        existing = (
            StoryReaction.objects.select_for_update()
            .filter(story=story, user=caller.user)
            .first()
        )
        if existing is None:
            StoryReaction.objects.create(story=story, user=caller.user, reaction_type=reaction_type)
            return REACTION_ADDED
        if existing.reaction_type == reaction_type:
            existing.delete()
            return REACTION_REMOVED
        existing.reaction_type = reaction_type
        existing.save(update_fields=['reaction_type'])
        return REACTION_CHANGED
