"""
Management command to seed the built-in checklist templates.

    python manage.py seed_checklist_templates
    python manage.py seed_checklist_templates --stage marketing_assets
"""

from django.core.management.base import BaseCommand, CommandError

from catalog.checklist_templates import seed_builtin_templates
from catalog.workflow.stages import STAGE_FLOW


class Command(BaseCommand):
    help = 'Seeds the built-in Song Workflow checklist templates'

    def add_arguments(self, parser):
        parser.add_argument(
            '--stage',
            help='Only seed templates of this stage',
        )

    def handle(self, *args, **options):
        stage = options.get('stage')
        if stage and stage not in STAGE_FLOW:
            raise CommandError(f"Unknown stage '{stage}'. Choose from: {', '.join(STAGE_FLOW)}")

        templates_created, items_created = seed_builtin_templates(stage)

        if templates_created or items_created:
            self.stdout.write(self.style.SUCCESS(
                f'Created {templates_created} templates and {items_created} template items'
            ))
        else:
            self.stdout.write(self.style.WARNING('All built-in templates already exist'))
