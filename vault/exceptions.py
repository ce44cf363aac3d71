import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InvalidRequest(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'
    default_code = 'invalid_request'


class Unauthenticated(exceptions.AuthenticationFailed):
    default_detail = 'Invalid or expired token'
    default_code = 'unauthenticated'


class Forbidden(exceptions.PermissionDenied):
    default_detail = 'Not authorized to access this file'
    default_code = 'forbidden'


class NotFound(exceptions.NotFound):
    default_detail = 'File not found'


class InternalInconsistency(exceptions.APIException):
    """
    A stored record is missing a field every record is expected to carry
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Stored file metadata is inconsistent.'
    default_code = 'internal_inconsistency'


class StoreUnavailable(exceptions.APIException):
    """
    The object store or the metadata store failed to complete an operation
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Backing store unavailable.'
    default_code = 'store_unavailable'


def vault_exception_handler(exc, context):
    """
    Render every error as ``{"error": <message>}``.

    DRF's default handler takes care of status codes and headers (including
    WWW-Authenticate on 401); anything it does not recognise becomes a
    logged 500.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
        return Response(
            {'error': 'Internal server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    detail = response.data.get('detail') if isinstance(response.data, dict) else None
    # Views report field errors themselves; a bare ValidationError has no detail key
    response.data = {'error': str(detail) if detail is not None else InvalidRequest.default_detail}
    return response
