"""
drf-spectacular preprocessing hooks.
"""

INTERNAL_PATHS = (
    '/admin/',
    '/health/',
    '/api/sms/v1/delivery-callback',
)


def preprocess_exclude_internal(endpoints, **kwargs):
    """Keep provider callbacks and ops endpoints out of the public API docs."""
    return [
        (path, path_regex, method, callback)
        for (path, path_regex, method, callback) in endpoints
        if not path.startswith(INTERNAL_PATHS)
    ]
