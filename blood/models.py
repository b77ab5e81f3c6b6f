from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


BLOOD_GROUP_CHOICES = [
    ('A+', 'A+'),
    ('A-', 'A-'),
    ('B+', 'B+'),
    ('B-', 'B-'),
    ('AB+', 'AB+'),
    ('AB-', 'AB-'),
    ('O+', 'O+'),
    ('O-', 'O-'),
]


class AccountProfile(models.Model):
    """Account-level contact details that django.contrib.auth does not store."""

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='account_profile')
    phone = models.CharField(max_length=30, blank=True)

    def __str__(self):
        return f"{self.user} ({self.phone or 'no phone'})"


class BloodRequest(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    EMERGENCY_NORMAL = 'normal'
    EMERGENCY_CHOICES = [
        (EMERGENCY_NORMAL, 'Normal'),
        ('urgent', 'Urgent'),
        ('critical', 'Critical'),
    ]

    DEFAULT_NEEDED_TIME = '12:00'

    patient_name = models.CharField(max_length=120)
    age = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(150)])
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES)
    needed_units = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    hospital_name = models.CharField(max_length=200)
    hospital_address = models.CharField(max_length=255)
    ward_bed_number = models.CharField(max_length=60, null=True, blank=True)
    phone = models.CharField(max_length=30)
    emergency_level = models.CharField(max_length=10, choices=EMERGENCY_CHOICES, default=EMERGENCY_NORMAL)
    needed_date = models.DateField()
    needed_time = models.CharField(max_length=10, default=DEFAULT_NEEDED_TIME)
    reason_notes = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    accepted_by = models.CharField(max_length=150, null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='blood_requests',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.patient_name} - {self.blood_group} ({self.status})"

    def is_owned_by(self, caller) -> bool:
        if self.created_by_id is None or not caller.is_authenticated:
            return False
        return str(self.created_by_id) == caller.user_id

    def to_dict(self):
        return {
            'id': self.pk,
            'patientName': self.patient_name,
            'age': self.age,
            'bloodGroup': self.blood_group,
            'neededUnits': self.needed_units,
            'hospitalName': self.hospital_name,
            'hospitalAddress': self.hospital_address,
            'wardBedNumber': self.ward_bed_number,
            'phone': self.phone,
            'emergencyLevel': self.emergency_level,
            'neededDate': self.needed_date,
            'neededTime': self.needed_time,
            'reasonNotes': self.reason_notes,
            'status': self.status,
            'acceptedBy': self.accepted_by,
            'createdBy': str(self.created_by_id) if self.created_by_id is not None else None,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }


class Alert(models.Model):
    TYPE_BLOOD_REQUEST = 'blood_request'
    TYPE_DONOR_ACCEPTED = 'donor_accepted'
    TYPE_SYSTEM = 'system'
    TYPE_CHOICES = [
        (TYPE_BLOOD_REQUEST, 'Blood request'),
        (TYPE_DONOR_ACCEPTED, 'Donor accepted'),
        (TYPE_SYSTEM, 'System'),
    ]

    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    # Copied identifiers, no foreign keys: alerts may outlive what they point at.
    related_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    user_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        scope = self.user_id or 'broadcast'
        return f"{self.type}: {self.title} -> {scope}"

    def to_dict(self):
        return {
            'id': self.pk,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'isRead': self.is_read,
            'relatedId': self.related_id,
            'userId': self.user_id,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }
