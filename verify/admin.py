from django.contrib import admin

from verify.models import OTPRecord


@admin.register(OTPRecord)
class OTPRecordAdmin(admin.ModelAdmin):
    list_display = ['phone', 'account', 'status', 'pin_type', 'code_length', 'attempts', 'max_attempts',
                    'expires_at', 'created_at']
    list_filter = ['status', 'pin_type']
    search_fields = ['phone', 'account__name']
    readonly_fields = [f.name for f in OTPRecord._meta.fields if f.name != 'code_hash']
    exclude = ['code_hash']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False
