from django.contrib import admin
from django.utils import timezone

from accounts.models import Account, AccountAPIKey, SenderID, Transaction


class AccountAPIKeyInline(admin.TabularInline):
    model = AccountAPIKey
    extra = 0
    fields = ['label', 'api_key', 'is_active', 'last_used_at', 'created_at']
    readonly_fields = ['api_key', 'last_used_at', 'created_at']


class SenderIDInline(admin.TabularInline):
    model = SenderID
    extra = 0
    fields = ['name', 'status', 'is_active', 'is_default']


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'status', 'wallet_balance', 'credit_balance', 'currency', 'created_at']
    list_filter = ['status', 'currency']
    search_fields = ['name', 'slug', 'contact_email']
    readonly_fields = ['created_at', 'updated_at']
    prepopulated_fields = {'slug': ('name',)}
    inlines = [AccountAPIKeyInline, SenderIDInline]

    fieldsets = (
        ('Account Info', {
            'fields': ('name', 'slug', 'contact_email', 'contact_phone', 'status'),
        }),
        ('Billing', {
            'fields': ('wallet_balance', 'credit_balance', 'currency', 'low_balance_threshold'),
        }),
        ('Limits', {
            'fields': ('rate_limit_per_minute', 'ip_whitelist'),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
        }),
    )


@admin.register(SenderID)
class SenderIDAdmin(admin.ModelAdmin):
    list_display = ['name', 'account', 'status', 'is_active', 'is_default', 'created_at']
    list_filter = ['status', 'is_active']
    search_fields = ['name', 'account__name']
    actions = ['approve', 'reject']

    @admin.action(description='Approve selected sender IDs')
    def approve(self, request, queryset):
        count = queryset.update(status='approved', approved_at=timezone.now())
        self.message_user(request, f'{count} sender ID(s) approved.')

    @admin.action(description='Reject selected sender IDs')
    def reject(self, request, queryset):
        count = queryset.update(status='rejected', is_default=False)
        self.message_user(request, f'{count} sender ID(s) rejected.')


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['account', 'tx_type', 'amount', 'currency', 'service_type', 'reference', 'created_at']
    list_filter = ['tx_type', 'service_type']
    search_fields = ['reference', 'account__name']
    readonly_fields = [f.name for f in Transaction._meta.fields]
