from django.apps import AppConfig


class VerifyConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'verify'
    verbose_name = 'OTP Verification'
