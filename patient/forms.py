from django import forms

from blood.forms import IsoDateField
from .models import Patient


class PatientForm(forms.ModelForm):
    country = forms.CharField(max_length=100, required=False)

    class Meta:
        model = Patient
        exclude = ['created_at']
        field_classes = {
            'date_of_birth': IsoDateField,
        }

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()

    def clean_country(self):
        return (self.cleaned_data.get('country') or '').strip() or 'USA'

    def validate_unique(self):
        # Duplicate emails are reported by the view as a conflict.
        pass
