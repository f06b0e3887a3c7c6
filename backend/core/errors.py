"""Error taxonomy raised by the scheduling engine.

Each error carries a machine-readable ``kind`` and the HTTP status the API layer
renders it with. The human-readable message is the exception's ``detail``.
"""

from fastapi import status


class SchedulingError(Exception):
    kind = 'scheduling_error'
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {'error': self.kind, 'detail': self.detail}


class NotFound(SchedulingError):
    kind = 'not_found'
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(SchedulingError):
    kind = 'forbidden'
    status_code = status.HTTP_403_FORBIDDEN


class InvalidArgument(SchedulingError):
    kind = 'invalid_argument'
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTime(SchedulingError):
    kind = 'invalid_time'
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidState(SchedulingError):
    kind = 'invalid_state'
    status_code = status.HTTP_409_CONFLICT
