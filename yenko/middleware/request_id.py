"""
Request ID middleware for request tracing and logging
"""
import uuid

REQUEST_ID_HEADER = 'X-Request-ID'


class RequestIdMiddleware:
    """
    WSGI middleware that tags every request with an id.

    An incoming ``X-Request-ID`` is reused so ids can follow a request across
    services; otherwise a new uuid4 is generated. The id is stored in the WSGI
    environ under ``request_id`` and echoed back on the response.
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        request_id = (environ.get('HTTP_X_REQUEST_ID') or '').strip()[:64] or str(uuid.uuid4())
        environ['request_id'] = request_id

        def custom_start_response(status, headers, exc_info=None):
            headers.append((REQUEST_ID_HEADER, request_id))
            return start_response(status, headers, exc_info)

        return self.app(environ, custom_start_response)


def current_request_id():
    """The id of the request being handled, or None outside a request."""
    from flask import has_request_context, request

    if not has_request_context():
        return None
    return request.environ.get('request_id')
