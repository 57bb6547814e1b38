"""
Django admin configuration for tenants app.
"""
from django.contrib import admin
from .models import Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'status', 'template', 'module_access_mode', 'created_at')
    list_filter = ('status', 'module_access_mode')
    search_fields = ('name', 'slug')
    # The mode flag is owned by the role matrix save
    readonly_fields = ('module_access_mode',)
