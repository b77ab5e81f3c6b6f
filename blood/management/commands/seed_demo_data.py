import random
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from faker import Faker

from blood import models as blood_models
from blood.models import BLOOD_GROUP_CHOICES
from blood.services import requests as request_service
from blood.utils.identity import ANONYMOUS
from donor import models as donor_models

BLOOD_GROUPS = [value for value, _ in BLOOD_GROUP_CHOICES]
GENDERS = ["male", "female"]
DISTRICTS = {
    "Dhaka": ["Dhanmondi", "Mirpur", "Uttara", "Gulshan"],
    "Chattogram": ["Pahartali", "Kotwali", "Panchlaish"],
    "Sylhet": ["Beanibazar", "Companiganj", "Sylhet Sadar"],
    "Khulna": ["Dighalia", "Rupsa", "Sonadanga"],
}
HOSPITALS = [
    ("Dhaka Medical College Hospital", "Bakshibazar, Dhaka"),
    ("Chattogram Medical College Hospital", "Panchlaish, Chattogram"),
    ("Sylhet MAG Osmani Medical College", "Kajolshah, Sylhet"),
    ("Khulna Medical College Hospital", "Boyra, Khulna"),
]
EMERGENCY_LEVELS = [value for value, _ in blood_models.BloodRequest.EMERGENCY_CHOICES]


class Command(BaseCommand):
    help = "Generate demo donors and blood requests (requests go through the normal lifecycle, so alerts are emitted)"

    def add_arguments(self, parser):
        parser.add_argument("--donors", type=int, default=40, help="Number of donors to create (default 40)")
        parser.add_argument("--requests", type=int, default=10, help="Number of blood requests to create (default 10)")
        parser.add_argument("--seed", type=int, help="Random seed for deterministic runs")
        parser.add_argument("--purge", action="store_true", help="Delete existing donors, requests and alerts before seeding")

    def handle(self, *args, **options):
        faker = Faker()
        if options.get("seed") is not None:
            Faker.seed(options["seed"])
            random.seed(options["seed"])

        if options.get("purge"):
            self._purge_existing()

        with transaction.atomic():
            donors = self._create_donors(max(0, options["donors"]), faker)

        # Requests are created outside the donor transaction: each one commits
        # before its alert fan-out, the same as through the API.
        requests = [self._create_request(faker) for _ in range(max(0, options["requests"]))]

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed complete: {len(donors)} donors, {len(requests)} blood requests, "
                f"{blood_models.Alert.objects.count()} alerts in total."
            )
        )

    # ------------------------------------------------------------------
    def _purge_existing(self):
        self.stdout.write("Purging existing donors, blood requests and alerts…")
        blood_models.Alert.objects.all().delete()
        blood_models.BloodRequest.objects.all().delete()
        donor_models.Donor.objects.all().delete()
        self.stdout.write(self.style.WARNING("Existing demo records removed."))

    def _create_donors(self, count, faker):
        today = timezone.now().date()
        donors = []
        for _ in range(count):
            gender = random.choice(GENDERS)
            district = random.choice(list(DISTRICTS))
            first_name = faker.first_name_female() if gender == "female" else faker.first_name_male()
            name = f"{first_name} {faker.last_name()}"

            # A quarter never donated; the rest spread across the last year.
            last_donation = None
            if random.random() > 0.25:
                last_donation = today - timedelta(days=random.randint(10, 365))

            donors.append(
                donor_models.Donor(
                    name=name,
                    gender=gender,
                    phone=f"01{random.randint(300000000, 999999999)}",
                    email=f"{first_name.lower()}.{random.randint(1000, 999999)}@demo.local",
                    district=district,
                    upazila=random.choice(DISTRICTS[district]),
                    area=faker.street_name(),
                    address=faker.street_address(),
                    blood_group=random.choice(BLOOD_GROUPS),
                    dob=faker.date_of_birth(minimum_age=18, maximum_age=60),
                    last_donation=last_donation,
                    donations_count=0 if last_donation is None else random.randint(1, 12),
                    is_available=random.choice([None, None, None, False]),
                )
            )
        return donor_models.Donor.objects.bulk_create(donors)

    def _create_request(self, faker):
        hospital_name, hospital_address = random.choice(HOSPITALS)
        data = {
            "patient_name": faker.name(),
            "age": random.randint(1, 90),
            "blood_group": random.choice(BLOOD_GROUPS),
            "needed_units": random.randint(1, 4),
            "hospital_name": hospital_name,
            "hospital_address": hospital_address,
            "ward_bed_number": f"Ward {random.randint(1, 12)}, Bed {random.randint(1, 40)}",
            "phone": f"01{random.randint(300000000, 999999999)}",
            "emergency_level": random.choice(EMERGENCY_LEVELS),
            "needed_date": timezone.now().date() + timedelta(days=random.randint(0, 14)),
            "needed_time": f"{random.randint(8, 20):02d}:00",
            "reason_notes": faker.sentence(nb_words=8),
        }
        return request_service.create_blood_request(data, ANONYMOUS)
