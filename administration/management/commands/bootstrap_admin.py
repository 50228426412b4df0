"""
Management command to provision the initial super admin from configuration.

Reads BOOTSTRAP_ADMIN_EMAIL / BOOTSTRAP_ADMIN_PASSWORD / BOOTSTRAP_ADMIN_NAME
from settings unless overridden on the command line. Safe to run on every
deploy: an existing account and grant are left untouched.
"""

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from administration.permissions import bootstrap_admin
from core.exceptions import InvalidInput


class Command(BaseCommand):
    help = 'Create the configured super admin account if it does not exist'

    def add_arguments(self, parser):
        parser.add_argument('--email', help='Override BOOTSTRAP_ADMIN_EMAIL')
        parser.add_argument('--password', help='Override BOOTSTRAP_ADMIN_PASSWORD')
        parser.add_argument('--name', help='Override BOOTSTRAP_ADMIN_NAME')

    def handle(self, *args, **options):
        email = options.get('email') or settings.BOOTSTRAP_ADMIN_EMAIL
        password = options.get('password') or settings.BOOTSTRAP_ADMIN_PASSWORD
        full_name = options.get('name') or settings.BOOTSTRAP_ADMIN_NAME

        try:
            grant, created = bootstrap_admin(email, password, full_name)
        except InvalidInput as exc:
            raise CommandError(exc.message)

        if created:
            self.stdout.write(self.style.SUCCESS(f"Super admin ready: {grant.user.email}"))
        else:
            self.stdout.write(f"Admin {grant.user.email} already exists, nothing to do")
