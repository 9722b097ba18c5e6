"""
Management command to ensure one role per duty exists.

Usage:
    python manage.py ensure_default_roles

Idempotent: existing roles keep their name, missing permissions are added.
"""
from django.core.management.base import BaseCommand

from apps.authz.models import Role, PermissionChoices


DEFAULT_ROLES = {
    'Administrator': [PermissionChoices.ADMIN],
    'Doctor': [PermissionChoices.DOCTOR],
    'Vitals Desk': [PermissionChoices.VITALS],
    'Lab Technician': [PermissionChoices.LAB],
    'Pharmacist': [PermissionChoices.INVENTORY],
}


class Command(BaseCommand):
    help = 'Ensure default roles exist with their permissions'

    def handle(self, *args, **options):
        for name, permissions in DEFAULT_ROLES.items():
            role, created = Role.objects.get_or_create(
                name=name,
                defaults={'allowed': [str(p) for p in permissions]}
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'  ✓ Created role: {name}'))
                continue

            missing = [str(p) for p in permissions if str(p) not in role.allowed]
            if missing:
                role.allowed = role.allowed + missing
                role.save(update_fields=['allowed', 'updated_at'])
                self.stdout.write(self.style.SUCCESS(f'  ✓ Updated role: {name} (+{", ".join(missing)})'))
            else:
                self.stdout.write(f'  - Role exists: {name}')
