from django import forms

from blood.models import BLOOD_GROUP_CHOICES
from .models import StoryReaction, SuccessStory


class SuccessStoryForm(forms.ModelForm):
    rating = forms.IntegerField(min_value=1, max_value=5, required=False)

    class Meta:
        model = SuccessStory
        fields = ['name', 'location', 'story', 'blood_group', 'rating']

    def clean_rating(self):
        return self.cleaned_data.get('rating') or 5


class SuccessStoryUpdateForm(forms.Form):
    """Only the submitted keys are applied."""

    name = forms.CharField(max_length=150, required=False)
    location = forms.CharField(max_length=150, required=False)
    story = forms.CharField(required=False)
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)

    def __init__(self, data=None, *args, **kwargs):
        super().__init__(data, *args, **kwargs)
        self.submitted = [name for name in self.fields if data is not None and name in data]

    def clean(self):
        cleaned = super().clean()
        for name in ('name', 'location', 'story'):
            if name in self.submitted and not cleaned.get(name):
                self.add_error(name, 'This field cannot be blank.')
        return cleaned

    def changes(self) -> dict:
        return {name: self.cleaned_data[name] for name in self.submitted if name in self.cleaned_data}


class ReactionForm(forms.Form):
    reaction_type = forms.ChoiceField(
        choices=StoryReaction.TYPE_CHOICES,
        error_messages={'required': 'Invalid reaction type', 'invalid_choice': 'Invalid reaction type'},
    )
