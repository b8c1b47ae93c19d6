"""
检查 Tenant LMS 配置
"""

from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError
from django.db import DatabaseError, connection

from ...conf import lms_settings
from ...tenancy import policy_registry, tenant_registry


class Command(BaseCommand):
    help = 'Check Tenant LMS configuration'

    def handle(self, *args, **options):
        """执行配置检查"""
        self.stdout.write("🔍 Checking Tenant LMS configuration...")
        self.stdout.write("=" * 60)

        self.stdout.write("\n📋 Tenant isolation:")
        self.stdout.write(f"  👑 Exempt role: {lms_settings.EXEMPT_ROLE}")
        self.stdout.write(f"  🏷️  Tenant header: {lms_settings.TENANT_HEADER}")
        fail_open = lms_settings.FAIL_OPEN_ON_UNRESOLVED_TENANT
        self.stdout.write(f"  🚪 Unresolved tenant: {'no filter (fail-open)' if fail_open else 'deny all'}")

        self.stdout.write("\n🔐 Authentication:")
        self.stdout.write(f"  🔑 JWT Secret: {'✅ Set' if lms_settings.JWT_SECRET_KEY else '❌ Missing'}")
        self.stdout.write(f"  🧮 Algorithm: {lms_settings.JWT_ALGORITHM}")
        self.stdout.write(f"  ⏰ Access token lifetime: {lms_settings.JWT_ACCESS_TOKEN_LIFETIME}s")
        self.stdout.write(f"  ⏰ Refresh token lifetime: {lms_settings.JWT_REFRESH_TOKEN_LIFETIME}s")

        self.stdout.write("\n⚙️  Optional Settings:")
        self.stdout.write(f"  🕐 Cache Timeout: {lms_settings.CACHE_TIMEOUT}s")
        self.stdout.write(f"  📝 Registration: {'on' if lms_settings.ENABLE_REGISTRATION else 'off'}")
        self.stdout.write(f"  🧾 Audit log: {'on' if lms_settings.ENABLE_AUDIT_LOG else 'off'}")
        self.stdout.write(f"  📄 Page size: {lms_settings.PAGE_SIZE} (max {lms_settings.MAX_PAGE_SIZE})")

        self.stdout.write("\n🗂️  Tenant-owned models:")
        for model in tenant_registry.models():
            state = "scoped" if tenant_registry.is_scoped(model) else "DETACHED"
            self.stdout.write(f"  • {model._meta.label} ({tenant_registry.field_for(model)}, {state})")

        self.stdout.write("\n🛡️  Policies:")
        for label in policy_registry.labels():
            self.stdout.write(f"  • {label}")

        self.stdout.write("\n🔗 Database Connection:")
        try:
            connection.ensure_connection()
            self.stdout.write("  ✅ Connection successful")
        except DatabaseError as e:
            raise CommandError(f"Database connection failed: {e}")

        try:
            lms_settings.validate()
        except ImproperlyConfigured as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS("\n✅ Configuration looks good"))
