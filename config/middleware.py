"""
Host-based admin access restriction.
Returns 404 for /admin/ unless the request arrives on ADMIN_DOMAIN.
"""

from django.conf import settings
from django.http import HttpResponseNotFound


class AdminHostRestrictionMiddleware:
    """
    Block access to /admin/ on any host other than settings.ADMIN_DOMAIN.
    API clients on the public host never see the admin login page.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.admin_domain = getattr(settings, 'ADMIN_DOMAIN', '')

    def __call__(self, request):
        if self.admin_domain and request.path.startswith('/admin/'):
            host = request.get_host().split(':')[0]
            if host != self.admin_domain:
                return HttpResponseNotFound()
        return self.get_response(request)
