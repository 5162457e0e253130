# core/exceptions.py

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for expected, typed booking outcomes"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'booking_error'
    default_message = 'Booking request failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(BookingError):
    code = 'invalid_request'
    default_message = 'Invalid request'


class PastDate(BookingError):
    code = 'past_date'
    default_message = 'Appointment date cannot be in the past'


class InvalidStatus(BookingError):
    code = 'invalid_status'
    default_message = 'Invalid appointment status'


class SlotUnavailable(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = 'slot_unavailable'
    default_message = 'This time slot is not available'


class AlreadyTerminal(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = 'already_terminal'
    default_message = 'Appointment is already closed'


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'
    default_message = 'Not found'


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'forbidden'
    default_message = 'You do not have permission to perform this action'


def booking_exception_handler(exc, context):
    """Map BookingError to {'error', 'code'} responses, defer the rest to DRF"""
    if isinstance(exc, BookingError):
        view = context.get('view')
        logger.info(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response(
            {'error': exc.message, 'code': exc.code},
            status=exc.status_code
        )

    return exception_handler(exc, context)
