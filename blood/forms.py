from django import forms
from django.utils.dateparse import parse_datetime

from . import models


class IsoDateField(forms.DateField):
    """DateField that also takes full ISO timestamps ("2025-03-01T00:00:00.000Z")."""

    def to_python(self, value):
        if isinstance(value, str) and "T" in value:
            parsed = parse_datetime(value.strip().replace("Z", "+00:00"))
            if parsed is not None:
                return parsed.date()
        return super().to_python(value)


class BloodRequestForm(forms.ModelForm):
    emergency_level = forms.ChoiceField(choices=models.BloodRequest.EMERGENCY_CHOICES, required=False)
    needed_time = forms.CharField(max_length=10, required=False)

    class Meta:
        model = models.BloodRequest
        fields = [
            'patient_name',
            'age',
            'blood_group',
            'needed_units',
            'hospital_name',
            'hospital_address',
            'ward_bed_number',
            'phone',
            'emergency_level',
            'needed_date',
            'needed_time',
            'reason_notes',
        ]
        field_classes = {
            'needed_date': IsoDateField,
        }

    def clean_emergency_level(self):
        return self.cleaned_data.get('emergency_level') or models.BloodRequest.EMERGENCY_NORMAL

    def clean_needed_time(self):
        return self.cleaned_data.get('needed_time') or models.BloodRequest.DEFAULT_NEEDED_TIME


class AcceptRequestForm(forms.Form):
    donor_id = forms.CharField(max_length=64, required=False)
    donor_name = forms.CharField(max_length=150, required=False)


class RequestStatusForm(forms.Form):
    status = forms.ChoiceField(
        choices=models.BloodRequest.STATUS_CHOICES,
        error_messages={'required': 'Invalid status', 'invalid_choice': 'Invalid status'},
    )


class RegisterForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(min_length=6, strip=False)
    phone = forms.CharField(max_length=30, required=False)

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(strip=False)

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


class AccountProfileForm(forms.Form):
    name = forms.CharField(max_length=150, required=False)
    phone = forms.CharField(max_length=30, required=False)
