import logging

from django.contrib import auth
from django.contrib.auth.models import User
from django.db import transaction

from . import forms, models
from .exceptions import Conflict, Unauthorized, ValidationError
from .services import alerts as alert_service
from .services import donor_matching
from .services import requests as request_service
from .utils.api import api_view, form_error_message, json_error, json_ok, parse_flag, parse_payload, query_params
from .utils.identity import authenticate, identity_for_user, optional_auth, require_identity

logger = logging.getLogger(__name__)


def _validated(form):
    if not form.is_valid():
        raise ValidationError(form_error_message(form))
    return form.cleaned_data


# ---------------------------------------------------------------------------
# Blood requests
# ---------------------------------------------------------------------------

@api_view(['GET', 'POST'])
@optional_auth
def blood_request_collection_view(request, caller):
    if request.method == 'POST':
        data = _validated(forms.BloodRequestForm(parse_payload(request)))
        blood_request = request_service.create_blood_request(data, caller)
        return json_ok(
            status=201,
            message='Blood request created successfully',
            bloodRequest=blood_request.to_dict(),
        )

    params = query_params(request)
    blood_requests = request_service.list_blood_requests(
        status=params.get('status'),
        blood_group=params.get('blood_group'),
    )
    return json_ok(bloodRequests=[br.to_dict() for br in blood_requests])


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@optional_auth
def blood_request_detail_view(request, pk, caller):
    if request.method == 'PATCH':
        # Status override; no identity check.
        form = forms.RequestStatusForm(parse_payload(request))
        if not form.is_valid():
            raise ValidationError('Invalid status')
        blood_request = request_service.set_blood_request_status(pk, form.cleaned_data['status'])
        return json_ok(message='Blood request status updated', bloodRequest=blood_request.to_dict())

    blood_request = request_service.get_blood_request(pk)

    if request.method == 'GET':
        return json_ok(bloodRequest=blood_request.to_dict())

    if request.method == 'PUT':
        identity = require_identity(caller)
        request_service.ensure_can_modify(blood_request, identity, 'edit')
        data = _validated(forms.BloodRequestForm(parse_payload(request)))
        blood_request = request_service.update_blood_request(blood_request, data)
        return json_ok(message='Blood request updated successfully', bloodRequest=blood_request.to_dict())

    identity = require_identity(caller)
    request_service.ensure_can_modify(blood_request, identity, 'delete')
    request_service.delete_blood_request(blood_request)
    return json_ok(message='Blood request deleted successfully')


@api_view(['PATCH'])
def blood_request_accept_view(request, pk):
    data = _validated(forms.AcceptRequestForm(parse_payload(request)))
    blood_request = request_service.accept_blood_request(
        pk,
        donor_id=data.get('donor_id') or None,
        donor_name=data.get('donor_name') or None,
    )
    return json_ok(message='Blood request accepted successfully', bloodRequest=blood_request.to_dict())


@api_view(['GET'])
def blood_request_match_view(request, pk):
    blood_request = request_service.get_blood_request(pk)
    candidates = donor_matching.match_donors_for_request(blood_request)
    return json_ok(
        bloodRequest=blood_request.to_dict(),
        donors=[candidate.as_dict() for candidate in candidates],
        count=len(candidates),
    )


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

@api_view(['GET'])
def alert_list_view(request):
    params = query_params(request)
    is_read = params.get('is_read')
    alerts = alert_service.list_alerts(
        user_id=params.get('user_id'),
        alert_type=params.get('type'),
        is_read=parse_flag(is_read) if is_read not in (None, '') else None,
    )
    return json_ok(alerts=[alert.to_dict() for alert in alerts])


@api_view(['PATCH'])
def alert_read_view(request, pk):
    alert = alert_service.mark_alert_read(pk)
    return json_ok(message='Alert marked as read', alert=alert.to_dict())


@api_view(['PATCH'])
def alert_read_all_view(request):
    payload = parse_payload(request)
    user_id = payload.get('user_id')
    updated = alert_service.mark_all_alerts_read(str(user_id) if user_id not in (None, '') else None)
    return json_ok(message='All alerts marked as read', updated=updated)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@api_view(['POST'])
def register_view(request):
    data = _validated(forms.RegisterForm(parse_payload(request)))
    email = data['email']
    if User.objects.filter(username__iexact=email).exists() or User.objects.filter(email__iexact=email).exists():
        raise Conflict('User already exists')

    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=data['password'],
            first_name=data['name'].strip(),
        )
        models.AccountProfile.objects.create(user=user, phone=(data.get('phone') or '').strip())

    auth.login(request, user)
    logger.info("Registered account %s (%s)", user.pk, email)
    return json_ok(status=201, message='Registration successful', user=identity_for_user(user).as_dict())


@api_view(['POST'])
def login_view(request):
    data = _validated(forms.LoginForm(parse_payload(request)))
    user = auth.authenticate(request, username=data['email'], password=data['password'])
    if user is None:
        logger.info("Failed login for %s", data['email'])
        raise Unauthorized('Invalid credentials')
    auth.login(request, user)
    return json_ok(message='Login successful', user=identity_for_user(user).as_dict())


@api_view(['POST'])
def logout_view(request):
    auth.logout(request)
    return json_ok(message='Logged out')


@api_view(['GET'])
@authenticate
def me_view(request, caller):
    return json_ok(user=caller.as_dict())


@api_view(['PUT'])
@authenticate
def profile_view(request, caller):
    form = forms.AccountProfileForm(parse_payload(request))
    data = _validated(form)
    user = caller.user

    if 'name' in form.data and data.get('name'):
        user.first_name = data['name'].strip()
        user.last_name = ''
        user.save(update_fields=['first_name', 'last_name'])
    if 'phone' in form.data:
        profile, _ = models.AccountProfile.objects.get_or_create(user=user)
        profile.phone = (data.get('phone') or '').strip()
        profile.save(update_fields=['phone'])

    return json_ok(message='Profile updated successfully', user=identity_for_user(user).as_dict())


# ---------------------------------------------------------------------------
# Liveness and fallbacks
# ---------------------------------------------------------------------------

@api_view(['GET'])
def health_view(request):
    return json_ok(ok=True)


@api_view(['GET'])
def root_view(request):
    return json_ok(message='API is running')


def not_found_view(request, exception=None):
    return json_error('Route not found', status=404)


def server_error_view(request):
    return json_error('Internal Server Error', status=500)
