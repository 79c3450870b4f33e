from django.contrib import admin

from messaging.models import Message, PricingRate, Provider


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ['name', 'provider_type', 'status', 'priority', 'success_rate', 'avg_latency_ms',
                    'error_count', 'last_error_at']
    list_filter = ['status', 'provider_type']
    search_fields = ['name']
    readonly_fields = ['success_rate', 'avg_latency_ms', 'error_count', 'total_attempts',
                       'last_success_at', 'last_error_at', 'created_at', 'updated_at']
    actions = ['reset_health']

    fieldsets = (
        ('Provider', {
            'fields': ('name', 'provider_type', 'status', 'priority'),
        }),
        ('Coverage', {
            'fields': ('supported_countries', 'supported_networks'),
        }),
        ('Credentials', {
            'fields': ('api_key', 'api_secret', 'base_url', 'extra_config'),
            'classes': ('collapse',),
        }),
        ('Health', {
            'fields': ('success_rate', 'avg_latency_ms', 'error_count', 'total_attempts',
                       'last_success_at', 'last_error_at'),
        }),
    )

    @admin.action(description='Reset error count (mark healthy)')
    def reset_health(self, request, queryset):
        count = queryset.update(error_count=0)
        self.message_user(request, f'{count} provider(s) reset.')


@admin.register(PricingRate)
class PricingRateAdmin(admin.ModelAdmin):
    list_display = ['country', 'network', 'message_type', 'rate_per_unit', 'currency',
                    'effective_from', 'effective_to', 'is_active']
    list_filter = ['country', 'message_type', 'is_active']
    search_fields = ['country', 'network']


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['recipient', 'account', 'message_type', 'status', 'provider_name', 'units',
                    'total_cost', 'batch_id', 'created_at']
    list_filter = ['status', 'message_type', 'recipient_country', 'provider_name']
    search_fields = ['recipient', 'batch_id', 'provider_message_id', 'account__name']
    exclude = ['content', 'redacted_content']
    readonly_fields = [f.name for f in Message._meta.fields if f.name not in ('content', 'redacted_content')] + ['body']
    date_hierarchy = 'created_at'

    @admin.display(description='Content')
    def body(self, obj):
        return obj.display_content

    def has_delete_permission(self, request, obj=None):
        return False
