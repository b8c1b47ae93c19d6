"""
创建跨租户超级管理员（super_admin，不绑定租户）
"""

from getpass import getpass

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.core.validators import validate_email

from ...conf import lms_settings
from ...models import AuditLog, User
from ...constants import AUDIT_ACTIONS


class Command(BaseCommand):
    help = 'Create a tenant-less super_admin user'

    def add_arguments(self, parser):
        parser.add_argument(
            '--email',
            type=str,
            help='Email address for the super admin'
        )
        parser.add_argument(
            '--password',
            type=str,
            help='Password for the super admin'
        )
        parser.add_argument(
            '--name',
            type=str,
            help='Display name for the super admin'
        )
        parser.add_argument(
            '--noinput',
            action='store_true',
            help='Do not prompt for missing values'
        )

    def handle(self, *args, **options):
        """执行创建"""
        email = options.get('email')
        password = options.get('password')
        name = options.get('name')
        interactive = not options.get('noinput')

        # 交互式输入
        if not email and interactive:
            email = input('Email: ').strip()

        if not password and interactive:
            password = getpass('Password: ')
            confirm_password = getpass('Confirm password: ')
            if password != confirm_password:
                raise CommandError("Passwords do not match")

        if name is None and interactive:
            name = input('Display name (optional): ').strip()

        if not email:
            raise CommandError("Email is required")

        if not password:
            raise CommandError("Password is required")

        if len(password) < lms_settings.PASSWORD_MIN_LENGTH:
            raise CommandError(f"Password must be at least {lms_settings.PASSWORD_MIN_LENGTH} characters long")

        try:
            validate_email(email)
        except ValidationError:
            raise CommandError("Invalid email format")

        if User.objects.filter(email=email.lower()).exists():
            raise CommandError(f'User with email "{email}" already exists')

        self.stdout.write(f"🚀 Creating super admin: {email}")

        user = User.objects.create_super_admin(email=email, password=password, name=name or '')

        AuditLog.log_action(
            user=user,
            action=AUDIT_ACTIONS['USER_CREATED'],
            resource_type='user',
            resource_id=user.id,
            metadata={'email': user.email, 'role': user.role, 'source': 'create_super_admin'}
        )

        self.stdout.write(self.style.SUCCESS('✅ Super admin created successfully!'))
        self.stdout.write(f"   ID: {user.id}")
        self.stdout.write(f"   Email: {user.email}")
        self.stdout.write(f"   Role: {user.role}")
