from django import forms

from blood.forms import IsoDateField
from blood.models import BLOOD_GROUP_CHOICES
from .models import Donor


class DonorRegistrationForm(forms.Form):
    name = forms.CharField(max_length=150)
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES)
    gender = forms.CharField(max_length=30)
    district = forms.CharField(max_length=100)
    upazila = forms.CharField(max_length=100)
    area = forms.CharField(max_length=150)

    phone = forms.CharField(max_length=30, required=False)
    email = forms.EmailField(required=False)
    address = forms.CharField(max_length=255, required=False)
    medical_conditions = forms.CharField(required=False)
    dob = IsoDateField(required=False)
    last_donation = IsoDateField(required=False)
    donations_count = forms.IntegerField(min_value=0, required=False)
    is_available = forms.NullBooleanField(required=False)
    visibility = forms.ChoiceField(choices=Donor.VISIBILITY_CHOICES, required=False)
    avatar = forms.CharField(max_length=255, required=False)

    def clean_email(self):
        return (self.cleaned_data.get('email') or '').strip().lower()

    def clean_donations_count(self):
        return self.cleaned_data.get('donations_count') or 0

    def clean_visibility(self):
        return self.cleaned_data.get('visibility') or Donor.VISIBILITY_PUBLIC


class DonorProfileForm(forms.Form):
    """Partial profile patch: every field optional, only submitted keys apply."""

    name = forms.CharField(max_length=150, required=False)
    blood_group = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, required=False)
    gender = forms.CharField(max_length=30, required=False)
    district = forms.CharField(max_length=100, required=False)
    upazila = forms.CharField(max_length=100, required=False)
    area = forms.CharField(max_length=150, required=False)
    phone = forms.CharField(max_length=30, required=False)
    address = forms.CharField(max_length=255, required=False)
    medical_conditions = forms.CharField(required=False)
    dob = IsoDateField(required=False)
    last_donation = IsoDateField(required=False)
    donations_count = forms.IntegerField(min_value=0, required=False)
    is_available = forms.NullBooleanField(required=False)
    visibility = forms.ChoiceField(choices=Donor.VISIBILITY_CHOICES, required=False)
    avatar = forms.CharField(max_length=255, required=False)

    # Blanking these would leave the record unusable in listings.
    NON_BLANK_FIELDS = ('name', 'blood_group', 'gender', 'district', 'upazila', 'area', 'visibility')

    def __init__(self, data=None, *args, **kwargs):
        super().__init__(data, *args, **kwargs)
        self.submitted = [name for name in self.fields if data is not None and name in data]

    def clean(self):
        cleaned = super().clean()
        for name in self.NON_BLANK_FIELDS:
            if name in self.submitted and name in cleaned and cleaned[name] in ('', None):
                self.add_error(name, 'This field cannot be blank.')
        if 'donations_count' in self.submitted and cleaned.get('donations_count') is None:
            cleaned['donations_count'] = 0
        return cleaned

    def changes(self) -> dict:
        return {name: self.cleaned_data[name] for name in self.submitted if name in self.cleaned_data}
