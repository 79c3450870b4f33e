from django.urls import path
from verify import views

app_name = 'verify'

urlpatterns = [
    path('send', views.send_otp, name='send'),
    path('verify', views.verify_otp, name='verify'),
    path('resend', views.resend_otp, name='resend'),
    path('status/<uuid:otp_id>', views.otp_status, name='status'),
    path('stats', views.otp_stats, name='stats'),
]
