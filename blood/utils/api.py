"""JSON request/response plumbing shared by the API views."""

from __future__ import annotations

import json
import logging
import re
from functools import wraps
from typing import Iterable

from django.core.serializers.json import DjangoJSONEncoder
from django.db import DatabaseError
from django.http import JsonResponse, QueryDict
from django.views.decorators.csrf import csrf_exempt

from blood.exceptions import ApiError, Internal, ValidationError

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def snake_to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def json_ok(status: int = 200, **payload) -> JsonResponse:
    return JsonResponse({"success": True, **payload}, status=status, encoder=DjangoJSONEncoder)


def json_error(message: str, status: int = 400) -> JsonResponse:
    return JsonResponse({"success": False, "error": message}, status=status)


def parse_payload(request) -> dict:
    """Return the request body as a dict with snake_case keys.

    JSON bodies are expected; form-encoded bodies are accepted for POST as
    well as PUT/PATCH (which Django does not parse on its own).
    """

    if request.content_type == "application/json":
        if not request.body:
            return {}
        try:
            body = json.loads(request.body)
        except ValueError:
            raise ValidationError("Malformed JSON body")
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
    elif request.method == "POST":
        body = request.POST.dict()
    else:
        body = QueryDict(request.body).dict()

    return {camel_to_snake(key): value for key, value in body.items()}


def query_params(request) -> dict:
    return {camel_to_snake(key): value for key, value in request.GET.items()}


def parse_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() == "true"


def form_error_message(form) -> str:
    """Flatten form errors into one line, naming fields as the client sent them."""

    missing = []
    problems = []
    for name, errors in form.errors.items():
        label = snake_to_camel(name) if name != "__all__" else None
        for error in errors.as_data():
            if error.code == "required":
                missing.append(label)
            elif label:
                problems.append(f"{label}: {' '.join(error.messages)}")
            else:
                problems.extend(error.messages)

    if missing:
        return "Missing required fields: " + ", ".join(missing)
    return "; ".join(problems) or "Invalid request"


def api_view(methods: Iterable[str]):
    """Wrap a function view as a JSON endpoint.

    Unsupported methods get 405, ``ApiError`` becomes its status code, and
    anything else is logged and reported as a 500 envelope.
    """

    allowed = [m.upper() for m in methods]

    def decorator(view):
        @csrf_exempt
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in allowed:
                response = json_error(f"Method {request.method} not allowed", status=405)
                response["Allow"] = ", ".join(allowed)
                return response
            try:
                return view(request, *args, **kwargs)
            except ApiError as exc:
                if exc.status_code >= 500:
                    logger.error("%s %s failed: %s", request.method, request.path, exc.message)
                return json_error(exc.message, status=exc.status_code)
            except DatabaseError:
                logger.exception("Database error on %s %s", request.method, request.path)
                error = Internal("Database error occurred")
                return json_error(error.message, status=error.status_code)
            except Exception:
                logger.exception("Unhandled error on %s %s", request.method, request.path)
                error = Internal()
                return json_error(error.message, status=error.status_code)

        return wrapper

    return decorator
