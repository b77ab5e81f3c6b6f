import logging

from django.db.models import Q

from blood.exceptions import Conflict, NotFound, ValidationError
from blood.utils.api import api_view, form_error_message, json_ok, parse_payload, query_params
from .forms import PatientForm
from .models import Patient

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
def patient_collection_view(request):
    if request.method == 'POST':
        form = PatientForm(parse_payload(request))
        if not form.is_valid():
            raise ValidationError(form_error_message(form))
        if Patient.objects.filter(email__iexact=form.cleaned_data['email']).exists():
            raise Conflict('A patient with this email already exists.')
        patient = form.save()
        logger.info("Registered patient %s (%s)", patient.pk, patient.email)
        return json_ok(status=201, patient=patient.to_dict())

    params = query_params(request)
    patients = Patient.objects.all()
    if params.get('event_interest'):
        patients = patients.filter(event_interest=params['event_interest'])
    search = (params.get('search') or '').strip()
    if search:
        patients = patients.filter(
            Q(first_name__icontains=search)
            | Q(last_name__icontains=search)
            | Q(email__icontains=search)
            | Q(phone__icontains=search)
        )

    sort = params.get('sort')
    if sort == 'newest':
        patients = patients.order_by('-created_at', '-id')
    elif sort == 'oldest':
        patients = patients.order_by('created_at', 'id')
    elif sort == 'name':
        patients = patients.order_by('last_name', 'first_name', 'id')

    patients = list(patients)
    return json_ok(patients=[patient.to_dict() for patient in patients], count=len(patients))


@api_view(['GET'])
def patient_detail_view(request, pk):
    try:
        patient = Patient.objects.get(pk=pk)
    except Patient.DoesNotExist:
        raise NotFound('Patient not found')
    return json_ok(patient=patient.to_dict())
