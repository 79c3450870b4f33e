from django.contrib import admin
from django.db import connection
from django.db.utils import DatabaseError
from django.http import JsonResponse
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView


def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
        database = 'ok'
    except DatabaseError:
        database = 'unavailable'
    status = 200 if database == 'ok' else 503
    return JsonResponse({'status': 'ok' if status == 200 else 'degraded', 'service': 'africom',
                         'database': database}, status=status)


urlpatterns = [
    # Admin - access restricted to ADMIN_DOMAIN by AdminHostRestrictionMiddleware
    path('admin/', admin.site.urls),

    # Health check
    path('health/', health_check, name='health'),

    # API
    path('api/sms/v1/', include('messaging.urls')),
    path('api/verify/v1/', include('verify.urls')),
    path('api/accounts/v1/', include('accounts.urls')),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
    path('api/docs/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
