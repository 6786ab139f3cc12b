from fastapi import status


class AccessError(Exception):
    """Base for every rejection raised by the access layer.

    A rejection is terminal for the request: it carries the HTTP status the
    API should answer with and a human readable reason, and it is always
    raised before the session is committed.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class Unauthenticated(AccessError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(AccessError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AccessError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(AccessError):
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(AccessError):
    status_code = status.HTTP_409_CONFLICT


class NotificationFailed(AccessError):
    status_code = status.HTTP_502_BAD_GATEWAY
