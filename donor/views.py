import logging

from blood.exceptions import ValidationError
from blood.services import donor_directory
from blood.utils.api import api_view, form_error_message, json_ok, parse_flag, parse_payload, query_params
from blood.utils.identity import authenticate, optional_auth, require_admin
from .forms import DonorProfileForm, DonorRegistrationForm

logger = logging.getLogger(__name__)


def _profile_changes(request):
    form = DonorProfileForm(parse_payload(request))
    if not form.is_valid():
        raise ValidationError(form_error_message(form))
    return form.changes()


@api_view(['GET', 'POST'])
@optional_auth
def donor_collection_view(request, caller):
    if request.method == 'POST':
        form = DonorRegistrationForm(parse_payload(request))
        if not form.is_valid():
            raise ValidationError(form_error_message(form))
        donor = donor_directory.register_donor(form.cleaned_data, caller)
        return json_ok(status=201, message='Donor registered successfully', donor=donor.to_dict())

    params = query_params(request)
    donors = donor_directory.list_donors(
        blood_group=params.get('blood_group'),
        gender=params.get('gender'),
        search=params.get('search'),
        sort=params.get('sort'),
        include_blocked=parse_flag(params.get('include_blocked')),
    )
    return json_ok(donors=[donor.to_dict() for donor in donors], count=len(donors))


@api_view(['GET', 'PUT'])
@authenticate
def donor_me_view(request, caller):
    donor = donor_directory.resolve_own_donor(caller)
    if request.method == 'PUT':
        donor = donor_directory.update_donor_profile(donor, _profile_changes(request))
        return json_ok(message='Profile updated successfully', donor=donor.to_dict())
    return json_ok(donor=donor.to_dict())


@api_view(['GET', 'PUT'])
@optional_auth
def donor_detail_view(request, pk, caller):
    if request.method == 'PUT':
        require_admin(caller)
        donor = donor_directory.get_donor(pk)
        donor = donor_directory.update_donor_profile(donor, _profile_changes(request))
        return json_ok(message='Donor updated successfully', donor=donor.to_dict())
    return json_ok(donor=donor_directory.get_donor(pk).to_dict())


@api_view(['PATCH'])
@optional_auth
def donor_block_view(request, pk, caller):
    admin = require_admin(caller)
    donor = donor_directory.block_donor(donor_directory.get_donor(pk), admin)
    return json_ok(message='Donor blocked successfully', donor=donor.to_dict())


@api_view(['PATCH'])
@optional_auth
def donor_unblock_view(request, pk, caller):
    admin = require_admin(caller)
    donor = donor_directory.unblock_donor(donor_directory.get_donor(pk), admin)
    return json_ok(message='Donor unblocked successfully', donor=donor.to_dict())
