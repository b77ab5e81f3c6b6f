"""Error taxonomy shared by every JSON endpoint.

Handlers raise these; ``blood.utils.api.api_view`` turns them into the
``{"success": false, "error": ...}`` envelope with the matching status code.
"""


class ApiError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Missing required fields"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    # Duplicate registrations and illegal transitions are reported as 400.
    status_code = 400
    default_message = "Conflicting state"


class Internal(ApiError):
    status_code = 500
