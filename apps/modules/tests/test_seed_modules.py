"""
Tests for the seed_modules management command.
"""
from io import StringIO

import pytest
from django.core.management import call_command

from apps.modules.management.commands.seed_modules import Command
from apps.modules.models import Module, Template, TemplateModule


def seed(*args):
    out = StringIO()
    call_command('seed_modules', *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
class TestSeedModules:
    """The canonical catalog is created once and kept in sync."""

    def test_creates_catalog_and_templates(self):
        seed()

        assert Module.objects.active().count() == len(Command.CANONICAL_MODULES)
        assert set(Template.objects.values_list('slug', flat=True)) == set(Command.STARTER_TEMPLATES)
        starter = Template.objects.get(slug='starter')
        assert set(starter.modules.values_list('slug', flat=True)) == {'topics', 'tasks', 'support', 'crm'}

    def test_routes_are_workspace_rooted(self):
        seed('--skip-templates')

        assert Module.objects.get(slug='finance').route_path == '/workspace/finanzas'
        assert all(route.startswith('/workspace/') for route in Module.objects.values_list('route_path', flat=True))
        assert not Template.objects.exists()

    def test_is_idempotent(self):
        seed()
        output = seed()

        assert 'Updated' not in output
        assert f'0 created, 0 updated, {len(Command.CANONICAL_MODULES)} unchanged' in output
        assert Module.objects.count() == len(Command.CANONICAL_MODULES)
        assert TemplateModule.objects.count() == sum(
            len(slugs) for _, _, slugs in Command.STARTER_TEMPLATES.values()
        )

    def test_restores_disabled_and_edited_modules(self):
        seed('--skip-templates')
        Module.objects.filter(slug='crm').update(is_active=False, name='Old CRM')
        Module.objects.get(slug='quotes').delete()

        output = seed('--skip-templates')

        crm = Module.objects.get(slug='crm')
        assert crm.is_active is True
        assert crm.name == 'CRM'
        assert Module.objects.filter(slug='quotes').exists()
        assert 'Updated: crm' in output

    def test_keeps_extra_template_links(self, make_module):
        seed()
        custom = make_module('custom')
        TemplateModule.objects.create(template=Template.objects.get(slug='starter'), module=custom)

        seed()

        assert Template.objects.get(slug='starter').modules.filter(slug='custom').exists()
