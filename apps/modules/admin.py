"""
Django admin configuration for module access.
"""
from django.contrib import admin
from .models import Module, Template, TemplateModule, RoleModuleOverride, UserModuleOverride


class TemplateModuleInline(admin.TabularInline):
    model = TemplateModule
    extra = 0


@admin.register(Module)
class ModuleAdmin(admin.ModelAdmin):
    list_display = ('slug', 'name', 'category', 'display_order', 'route_path', 'is_active')
    list_filter = ('is_active', 'category')
    search_fields = ('slug', 'name', 'feature_key')
    ordering = ('display_order', 'name')


@admin.register(Template)
class TemplateAdmin(admin.ModelAdmin):
    list_display = ('slug', 'name', 'is_active')
    search_fields = ('slug', 'name')
    inlines = [TemplateModuleInline]


# Matrix and override rows are edited through the API so saves stay atomic
admin.site.register(RoleModuleOverride)
admin.site.register(UserModuleOverride)
