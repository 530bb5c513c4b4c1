import logging

from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

from beds.errors import LifecycleError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    if isinstance(exc, LifecycleError):
        return Response({'ok': False, 'error': exc.as_dict()}, status=exc.status_code)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.error("Unhandled error in %s", context.get("view"), exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': detail}}, status=resp.status_code)
