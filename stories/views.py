from blood.exceptions import ValidationError
from blood.utils.api import api_view, form_error_message, json_ok, parse_payload
from blood.utils.identity import authenticate, optional_auth, require_identity
from . import services
from .forms import ReactionForm, SuccessStoryForm, SuccessStoryUpdateForm

REACTION_MESSAGES = {
    services.REACTION_ADDED: 'Reaction added',
    services.REACTION_CHANGED: 'Reaction updated',
    services.REACTION_REMOVED: 'Reaction removed',
}


@api_view(['GET', 'POST'])
@optional_auth
def story_collection_view(request, caller):
    if request.method == 'POST':
        identity = require_identity(caller)
        form = SuccessStoryForm(parse_payload(request))
        if not form.is_valid():
            raise ValidationError(form_error_message(form))
        story = services.create_story(form.cleaned_data, identity)
        return json_ok(status=201, message='Story created successfully', story=story.to_dict())

    return json_ok(stories=[story.to_dict() for story in services.list_stories()])


@api_view(['PUT', 'DELETE'])
@authenticate
def story_detail_view(request, pk, caller):
    story = services.get_story(pk)

    if request.method == 'DELETE':
        services.delete_story(story, caller)
        return json_ok(message='Story deleted successfully')

    form = SuccessStoryUpdateForm(parse_payload(request))
    if not form.is_valid():
        raise ValidationError(form_error_message(form))
    story = services.update_story(story, form.changes(), caller)
    return json_ok(message='Story updated successfully', story=story.to_dict())


@api_view(['POST'])
@authenticate
def story_react_view(request, pk, caller):
    story = services.get_story(pk)
    form = ReactionForm(parse_payload(request))
    if not form.is_valid():
        raise ValidationError('Invalid reaction type')
    outcome = services.toggle_reaction(story, caller, form.cleaned_data['reaction_type'])
    return json_ok(message=REACTION_MESSAGES[outcome], story=story.to_dict())
