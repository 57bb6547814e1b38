# Initial tenant schema

import uuid

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('modules', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Tenant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('name', models.CharField(help_text='Business name', max_length=255)),
                ('slug', models.SlugField(help_text='URL-friendly identifier', max_length=100, unique=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('trial', 'Free Trial'), ('suspended', 'Suspended'), ('canceled', 'Canceled')], db_index=True, default='active', help_text='Current tenant status', max_length=20)),
                ('feature_keys', models.JSONField(blank=True, default=list, help_text="Legacy feature keys (e.g., ['crm', 'finance']) used when the template has no module links")),
                ('module_access_mode', models.CharField(choices=[('default', 'Default (every role sees every enabled module)'), ('custom', 'Custom (roles see only their role matrix rows)')], default='default', help_text='Role visibility mode, written in the same transaction as the role matrix', max_length=10)),
                ('contact_email', models.EmailField(blank=True, help_text='Primary contact email for notifications', max_length=254, null=True)),
                ('template', models.ForeignKey(blank=True, help_text='Curated module template assigned to this tenant', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tenants', to='modules.template')),
            ],
            options={
                'db_table': 'tenants',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='tenant_status_created_idx'),
                ],
            },
        ),
    ]
