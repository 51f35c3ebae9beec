from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response


class Conflict(APIException):
    """A contended resource (slot, coupon, points, stock) is no longer available."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = '资源冲突，请刷新后重试'
    default_code = 'conflict'


def _error_code(exc) -> str:
    codes = getattr(exc, 'get_codes', None)
    if callable(codes):
        c = codes()
        if isinstance(c, str):
            return c
    return getattr(exc, 'default_code', None) or 'api_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    elif isinstance(resp.data, list) and len(resp.data) == 1:
        detail = resp.data[0]
    else:
        detail = resp.data
    return Response({'ok': False, 'error': {'code': _error_code(exc), 'message': detail}}, status=resp.status_code)
