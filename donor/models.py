from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from blood.models import BLOOD_GROUP_CHOICES


class Donor(models.Model):
    VISIBILITY_PUBLIC = 'public'
    VISIBILITY_ONLY_ME = 'only_me'
    VISIBILITY_CHOICES = [
        (VISIBILITY_PUBLIC, 'Public'),
        (VISIBILITY_ONLY_ME, 'Only me'),
    ]

    name = models.CharField(max_length=150)
    gender = models.CharField(max_length=30)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True, db_index=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='donor_profiles',
    )

    district = models.CharField(max_length=100)
    upazila = models.CharField(max_length=100)
    area = models.CharField(max_length=150)
    address = models.CharField(max_length=255, blank=True)

    medical_conditions = models.TextField(blank=True)
    dob = models.DateField(null=True, blank=True)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, db_index=True)

    # Donation history
    last_donation = models.DateField(null=True, blank=True)
    donations_count = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])

    avatar = models.CharField(max_length=255, blank=True, default='')

    # None means "derive from last_donation"; True/False is a manual override.
    is_available = models.BooleanField(null=True, blank=True, default=None)

    is_blocked = models.BooleanField(default=False)
    blocked_at = models.DateTimeField(null=True, blank=True)
    blocked_by = models.CharField(max_length=64, null=True, blank=True)

    visibility = models.CharField(max_length=10, choices=VISIBILITY_CHOICES, default=VISIBILITY_PUBLIC)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['email', 'blood_group'],
                condition=~Q(email=''),
                name='unique_donor_email_blood_group',
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.blood_group})"

    @property
    def is_female(self) -> bool:
        return (self.gender or '').strip().lower() == 'female'

    @property
    def donation_recovery_days(self) -> int:
        if self.is_female:
            return int(getattr(settings, "DONOR_RECOVERY_DAYS_FEMALE", 180))
        return int(getattr(settings, "DONOR_RECOVERY_DAYS", 90))

    @property
    def days_since_last_donation(self):
        if not self.last_donation:
            return None
        return (timezone.now().date() - self.last_donation).days

    @property
    def next_eligible_donation_date(self):
        if not self.last_donation:
            return None
        return self.last_donation + timedelta(days=self.donation_recovery_days)

    @property
    def calculated_availability(self) -> bool:
        elapsed = self.days_since_last_donation
        if elapsed is None:
            return False
        return elapsed >= self.donation_recovery_days

    def get_availability(self) -> bool:
        if self.is_available is not None:
            return self.is_available
        return self.calculated_availability

    def block(self, blocked_by: str):
        self.is_blocked = True
        self.blocked_at = timezone.now()
        self.blocked_by = blocked_by
        self.save(update_fields=["is_blocked", "blocked_at", "blocked_by"])

    def unblock(self):
        self.is_blocked = False
        self.blocked_at = None
        self.blocked_by = None
        self.save(update_fields=["is_blocked", "blocked_at", "blocked_by"])

    def to_dict(self):
        return {
            'id': self.pk,
            'name': self.name,
            'bloodGroup': self.blood_group,
            'gender': self.gender,
            'phone': self.phone,
            'email': self.email,
            'userId': str(self.user_id) if self.user_id is not None else None,
            'district': self.district,
            'upazila': self.upazila,
            'area': self.area,
            'address': self.address,
            'medicalConditions': self.medical_conditions,
            'dob': self.dob,
            'lastDonation': self.last_donation,
            'donationsCount': self.donations_count,
            'avatar': self.avatar,
            'isAvailable': self.is_available,
            'calculatedAvailability': self.calculated_availability,
            'availability': self.get_availability(),
            'nextEligibleDate': self.next_eligible_donation_date,
            'isBlocked': self.is_blocked,
            'blockedAt': self.blocked_at,
            'blockedBy': self.blocked_by,
            'visibility': self.visibility,
            'createdAt': self.created_at,
        }
