"""
Django admin configuration for identity and membership.
"""
from django.contrib import admin
from .models import User, TenantUser, AuditLog


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'first_name', 'last_name', 'is_active', 'is_superuser', 'last_login')
    list_filter = ('is_active', 'is_superuser')
    search_fields = ('email', 'first_name', 'last_name')
    exclude = ('password_hash',)


@admin.register(TenantUser)
class TenantUserAdmin(admin.ModelAdmin):
    list_display = ('user', 'tenant', 'role', 'is_active', 'invite_status')
    list_filter = ('role', 'is_active', 'invite_status')
    search_fields = ('user__email', 'tenant__name')


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('action', 'tenant', 'user', 'target_type', 'target_id', 'created_at')
    list_filter = ('action', 'target_type')
    readonly_fields = [field.name for field in AuditLog._meta.fields]
