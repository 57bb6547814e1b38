# Tenant role matrix rows and per-user overrides

import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('modules', '0001_initial'),
        ('tenants', '0001_initial'),
        ('rbac', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='RoleModuleOverride',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('role', models.CharField(choices=[('owner', 'Owner'), ('admin', 'Admin'), ('manager', 'Manager'), ('employee', 'Employee'), ('viewer', 'Viewer')], help_text='Role the module is visible to', max_length=20)),
                ('created_by', models.ForeignKey(blank=True, help_text='Admin who saved the matrix', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('module', models.ForeignKey(help_text='Module visible to the role', on_delete=django.db.models.deletion.CASCADE, related_name='role_overrides', to='modules.module')),
                ('tenant', models.ForeignKey(help_text='Tenant owning this matrix row', on_delete=django.db.models.deletion.CASCADE, related_name='role_module_overrides', to='tenants.tenant')),
            ],
            options={
                'db_table': 'role_module_overrides',
                'indexes': [
                    models.Index(fields=['tenant', 'role'], name='rmo_tenant_role_idx'),
                ],
                'unique_together': {('tenant', 'role', 'module')},
            },
        ),
        migrations.CreateModel(
            name='UserModuleOverride',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('override_type', models.CharField(choices=[('grant', 'Grant'), ('revoke', 'Revoke')], help_text='grant adds the module within the tenant ceiling; revoke removes it', max_length=10)),
                ('created_by', models.ForeignKey(blank=True, help_text='Admin who saved the overrides', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('module', models.ForeignKey(help_text='Module granted or revoked', on_delete=django.db.models.deletion.CASCADE, related_name='user_overrides', to='modules.module')),
                ('tenant', models.ForeignKey(help_text='Tenant the exception applies in', on_delete=django.db.models.deletion.CASCADE, related_name='user_module_overrides', to='tenants.tenant')),
                ('user', models.ForeignKey(help_text='User the exception applies to', on_delete=django.db.models.deletion.CASCADE, related_name='module_overrides', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_module_overrides',
                'indexes': [
                    models.Index(fields=['tenant', 'user'], name='umo_tenant_user_idx'),
                ],
                'unique_together': {('tenant', 'user', 'module')},
            },
        ),
    ]
