from django.db import models


class Patient(models.Model):
    # Personal information
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=30)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=30)

    # Address
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, default='USA')

    # Medical
    medical_conditions = models.TextField(blank=True)
    current_medications = models.TextField(blank=True)
    allergies = models.TextField(blank=True)
    emergency_contact_name = models.CharField(max_length=150, blank=True)
    emergency_contact_phone = models.CharField(max_length=30, blank=True)

    # Event sign-up
    event_interest = models.CharField(max_length=150, blank=True, db_index=True)
    preferred_session = models.CharField(max_length=60, blank=True)
    preferred_time_slot = models.CharField(max_length=60, blank=True)
    questions = models.TextField(blank=True)

    how_did_you_hear = models.CharField(max_length=150, blank=True)
    additional_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    @property
    def get_name(self):
        return self.first_name + " " + self.last_name

    def __str__(self):
        return self.get_name

    def to_dict(self):
        return {
            'id': self.pk,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
            'phone': self.phone,
            'dateOfBirth': self.date_of_birth,
            'gender': self.gender,
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'zipCode': self.zip_code,
            'country': self.country,
            'medicalConditions': self.medical_conditions,
            'currentMedications': self.current_medications,
            'allergies': self.allergies,
            'emergencyContactName': self.emergency_contact_name,
            'emergencyContactPhone': self.emergency_contact_phone,
            'eventInterest': self.event_interest,
            'preferredSession': self.preferred_session,
            'preferredTimeSlot': self.preferred_time_slot,
            'questions': self.questions,
            'howDidYouHear': self.how_did_you_hear,
            'additionalNotes': self.additional_notes,
            'createdAt': self.created_at,
        }
