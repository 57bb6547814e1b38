# Initial module registry and template schema

import uuid

from django.db import migrations, models
import django.db.models.deletion

from apps.modules.registry import ModuleIcon


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Module',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('slug', models.SlugField(help_text="Stable module id (e.g., 'crm', 'finance')", max_length=64, unique=True)),
                ('name', models.CharField(help_text='Display name', max_length=120)),
                ('description', models.TextField(blank=True, help_text='Short description shown in module pickers')),
                ('feature_key', models.CharField(blank=True, db_index=True, help_text='Legacy feature key, used only by the feature-key enablement fallback', max_length=64, null=True)),
                ('route_path', models.CharField(help_text='Workspace-rooted route (bare paths are prefixed with /workspace on save)', max_length=255)),
                ('icon', models.CharField(choices=ModuleIcon.choices, default='LayoutDashboard', help_text='Icon key from the icon registry', max_length=32)),
                ('category', models.CharField(default='Workspace', help_text='Navigation group label', max_length=100)),
                ('display_order', models.IntegerField(default=0, help_text='Sort position inside its category (lower first)')),
                ('is_active', models.BooleanField(db_index=True, default=True, help_text='Soft-disable flag; inactive modules are excluded from every resolution')),
            ],
            options={
                'db_table': 'modules',
                'ordering': ['display_order', 'name'],
                'indexes': [
                    models.Index(fields=['is_active', 'display_order'], name='module_active_order_idx'),
                    models.Index(fields=['category', 'display_order'], name='module_category_order_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Template',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('slug', models.SlugField(help_text='Stable template id', max_length=64, unique=True)),
                ('name', models.CharField(help_text='Display name', max_length=120)),
                ('description', models.TextField(blank=True, help_text='Who this template is meant for')),
                ('feature_keys', models.JSONField(blank=True, default=list, help_text='Legacy feature keys this template historically granted')),
                ('is_active', models.BooleanField(default=True, help_text='Whether the template can be assigned to new tenants')),
            ],
            options={
                'db_table': 'module_templates',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='TemplateModule',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('module', models.ForeignKey(help_text='Module granted by the template', on_delete=django.db.models.deletion.CASCADE, related_name='template_links', to='modules.module')),
                ('template', models.ForeignKey(help_text='Template granting the module', on_delete=django.db.models.deletion.CASCADE, related_name='template_modules', to='modules.template')),
            ],
            options={
                'db_table': 'template_modules',
                'unique_together': {('template', 'module')},
            },
        ),
        migrations.AddField(
            model_name='template',
            name='modules',
            field=models.ManyToManyField(blank=True, help_text='Curated module membership', related_name='templates', through='modules.TemplateModule', to='modules.module'),
        ),
    ]
