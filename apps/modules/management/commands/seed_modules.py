"""
Management command to seed the canonical module catalog.

Creates or updates every registry Module and the starter Templates that
bundle them. This command is idempotent and safe to re-run: existing rows
are updated in place, template links are added but never removed.
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.modules.models import Module, Template, TemplateModule
from apps.modules.registry import WorkspaceRoute


class Command(BaseCommand):
    help = 'Seed canonical modules and starter templates (idempotent)'

    # Canonical modules; routes are normalised under /workspace on save
    CANONICAL_MODULES = [
        # Workspace
        {'slug': 'topics', 'name': 'Topics', 'route_path': '/temas', 'icon': 'FolderOpen',
         'category': 'Workspace', 'display_order': 1, 'feature_key': None,
         'description': 'Case files and ongoing work'},
        {'slug': 'tasks', 'name': 'My Tasks', 'route_path': '/tareas', 'icon': 'Calendar',
         'category': 'Workspace', 'display_order': 2, 'feature_key': None,
         'description': 'Tasks assigned to you across topics'},
        {'slug': 'knowledge', 'name': 'Knowledge Base', 'route_path': '/knowledge', 'icon': 'BookOpen',
         'category': 'Workspace', 'display_order': 70, 'feature_key': 'knowledge',
         'description': 'Internal documentation and AI knowledge sources'},
        {'slug': 'notifications', 'name': 'Notifications', 'route_path': '/notifications',
         'icon': 'MessageSquare', 'category': 'Workspace', 'display_order': 80,
         'feature_key': 'notifications', 'description': 'Notification center'},
        {'slug': 'support', 'name': 'Support', 'route_path': '/soporte', 'icon': 'Ticket',
         'category': 'Workspace', 'display_order': 90, 'feature_key': None,
         'description': 'Technical support tickets'},

        # Sales
        {'slug': 'crm', 'name': 'CRM', 'route_path': '/crm', 'icon': 'Users',
         'category': 'Sales', 'display_order': 10, 'feature_key': 'crm',
         'description': 'Contacts, companies and activity'},
        {'slug': 'crm-fomo', 'name': 'CRM FOMO', 'route_path': '/crm-fomo', 'icon': 'Target',
         'category': 'Sales', 'display_order': 15, 'feature_key': 'crm_fomo',
         'description': 'Lead follow-up campaigns'},
        {'slug': 'sales', 'name': 'Sales', 'route_path': '/ventas', 'icon': 'TrendingUp',
         'category': 'Sales', 'display_order': 20, 'feature_key': 'sales',
         'description': 'Sales pipeline'},
        {'slug': 'opportunities', 'name': 'Opportunities', 'route_path': '/oportunidades',
         'icon': 'Briefcase', 'category': 'Sales', 'display_order': 25,
         'feature_key': 'opportunities', 'description': 'Open deals and tenders'},
        {'slug': 'hubspot', 'name': 'HubSpot', 'route_path': '/hubspot', 'icon': 'Share2',
         'category': 'Sales', 'display_order': 30, 'feature_key': 'hubspot',
         'description': 'HubSpot synchronisation'},

        # Insights
        {'slug': 'analytics', 'name': 'Analytics', 'route_path': '/analytics', 'icon': 'BarChart3',
         'category': 'Insights', 'display_order': 40, 'feature_key': 'analytics',
         'description': 'Dashboards and reports'},

        # Finance
        {'slug': 'finance', 'name': 'Finance', 'route_path': '/finanzas', 'icon': 'DollarSign',
         'category': 'Finance', 'display_order': 50, 'feature_key': 'finance',
         'description': 'Invoices, expenses and cash flow'},
        {'slug': 'quotes', 'name': 'Quotes', 'route_path': '/cotizador', 'icon': 'Receipt',
         'category': 'Finance', 'display_order': 55, 'feature_key': 'quotes',
         'description': 'Quote builder'},

        # Operations
        {'slug': 'construction', 'name': 'Construction', 'route_path': '/construccion',
         'icon': 'Hammer', 'category': 'Operations', 'display_order': 60,
         'feature_key': 'construction', 'description': 'Construction projects and sites'},
        {'slug': 'simulator', 'name': 'Simulator', 'route_path': '/simulador', 'icon': 'Cpu',
         'category': 'Operations', 'display_order': 100, 'feature_key': 'simulator',
         'description': 'Scenario simulator'},
    ]

    # Starter templates: slug -> (name, description, module slugs)
    STARTER_TEMPLATES = {
        'starter': (
            'Starter',
            'Small teams getting started',
            ['topics', 'tasks', 'support', 'crm'],
        ),
        'sales': (
            'Sales Team',
            'Commercial teams running a pipeline',
            ['topics', 'tasks', 'support', 'crm', 'crm-fomo', 'sales',
             'opportunities', 'hubspot', 'analytics'],
        ),
        'construction': (
            'Construction',
            'Construction companies managing projects and budgets',
            ['topics', 'tasks', 'support', 'construction', 'finance', 'quotes', 'analytics'],
        ),
    }

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-templates',
            action='store_true',
            help='Only seed the module catalog',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Seeding canonical modules...\n')

        created_count = 0
        updated_count = 0

        for module_data in self.CANONICAL_MODULES:
            fields = {key: value for key, value in module_data.items() if key != 'slug'}
            fields['route_path'] = str(WorkspaceRoute.parse(fields['route_path']))
            module = Module.objects_with_deleted.filter(slug=module_data['slug']).first()

            if module is None:
                Module.objects.create(slug=module_data['slug'], **fields)
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"✓ Created: {module_data['slug']}"))
                continue

            changed = [key for key, value in fields.items() if getattr(module, key) != value]
            if module.deleted_at is not None or not module.is_active:
                module.deleted_at = None
                module.is_active = True
                changed.append('is_active')

            if changed:
                for key in changed:
                    if key in fields:
                        setattr(module, key, fields[key])
                module.save()
                updated_count += 1
                self.stdout.write(self.style.WARNING(f"↻ Updated: {module.slug} ({', '.join(changed)})"))
            else:
                self.stdout.write(self.style.HTTP_INFO(f"  Exists: {module.slug}"))

        self.stdout.write(
            self.style.SUCCESS(
                f'\n✓ Modules: {created_count} created, {updated_count} updated, '
                f'{len(self.CANONICAL_MODULES) - created_count - updated_count} unchanged'
            )
        )

        if not options['skip_templates']:
            self._seed_templates()

        self.stdout.write(f'\nTotal active modules: {Module.objects.active().count()}')

    def _seed_templates(self):
        modules = {module.slug: module for module in Module.objects.active()}

        for slug, (name, description, module_slugs) in self.STARTER_TEMPLATES.items():
            template, created = Template.objects_with_deleted.update_or_create(
                slug=slug,
                defaults={'name': name, 'description': description, 'is_active': True, 'deleted_at': None},
            )

            linked = 0
            for module_slug in module_slugs:
                _, link_created = TemplateModule.objects.get_or_create(
                    template=template,
                    module=modules[module_slug],
                )
                linked += int(link_created)

            verb = 'Created' if created else 'Exists'
            self.stdout.write(
                self.style.SUCCESS(f'✓ Template {verb}: {slug} (+{linked} module links)')
            )
