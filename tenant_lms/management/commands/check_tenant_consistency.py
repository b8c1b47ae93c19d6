"""
检查租户数据一致性

- 每个租户归属模型都有租户列
- 没有行引用不存在的租户
- 子记录与父记录属于同一租户
"""

from django.core.management.base import BaseCommand, CommandError
from django.db.models import F

from ...models import Attendance, ClassSession, Course, CourseContent, Enrollment, Tenant, User
from ...tenancy import tenant_registry


# (模型, 关系字段, 说明)
PARENT_CHECKS = [
    (Course, 'category', 'course -> category'),
    (Course, 'instructor', 'course -> instructor'),
    (CourseContent, 'course', 'content -> course'),
    (CourseContent, 'parent', 'content -> parent'),
    (Enrollment, 'course', 'enrollment -> course'),
    (Enrollment, 'student', 'enrollment -> student'),
    (ClassSession, 'course', 'session -> course'),
    (ClassSession, 'tutor', 'session -> tutor'),
    (Attendance, 'session', 'attendance -> session'),
    (Attendance, 'student', 'attendance -> student'),
]


class Command(BaseCommand):
    help = 'Check tenant consistency of tenant-owned data'

    def add_arguments(self, parser):
        parser.add_argument(
            '--tenant',
            type=str,
            help='Only check rows of this tenant'
        )

    def handle(self, *args, **options):
        """执行一致性检查"""
        tenant_filter = options.get('tenant')
        self.stdout.write("🔍 Checking tenant consistency...")
        self.stdout.write("=" * 60)

        issues = []
        issues.extend(self.check_columns())
        issues.extend(self.check_orphans(tenant_filter))
        issues.extend(self.check_parents(tenant_filter))

        self.stdout.write("\n" + "=" * 60)
        if issues:
            for issue in issues:
                self.stdout.write(self.style.ERROR(f"  ❌ {issue}"))
            raise CommandError(f"Tenant consistency check failed with {len(issues)} issue(s)")

        self.stdout.write(self.style.SUCCESS("✅ Tenant data is consistent"))

    def check_columns(self):
        """租户归属模型必须有租户列"""
        self.stdout.write("\n📋 Tenant columns:")
        issues = []
        for model in tenant_registry.models():
            field = tenant_registry.field_for(model)
            column_names = {f.attname for f in model._meta.concrete_fields}
            if field in column_names:
                self.stdout.write(f"  ✅ {model._meta.label}.{field}")
            else:
                issues.append(f"{model._meta.label} has no '{field}' column")
        return issues

    def check_orphans(self, tenant_filter=None):
        """没有行引用不存在的租户"""
        self.stdout.write("\n🗂️  Tenant references:")
        issues = []
        for model in tenant_registry.models():
            field = tenant_registry.field_for(model)
            if model is Tenant:
                continue

            rows = model._default_manager.exclude(**{f'{field}__isnull': True})
            if tenant_filter:
                rows = rows.filter(**{field: tenant_filter})
            orphans = rows.exclude(**{f'{field}__in': Tenant.objects.values('id')}).count()

            if orphans:
                issues.append(f"{orphans} {model._meta.label} row(s) reference a missing tenant")
            else:
                self.stdout.write(f"  ✅ {model._meta.label}")

            if model is User:
                missing = model._default_manager.filter(tenant__isnull=True).exclude(role='super_admin').count()
                if missing:
                    issues.append(f"{missing} non super_admin user(s) have no tenant")
        return issues

    def check_parents(self, tenant_filter=None):
        """子记录与父记录同租户"""
        self.stdout.write("\n🔗 Parent/child tenants:")
        issues = []
        for model, relation, label in PARENT_CHECKS:
            rows = model._default_manager.filter(**{f'{relation}__isnull': False})
            if tenant_filter:
                rows = rows.filter(tenant_id=tenant_filter)
            mismatched = rows.exclude(**{f'{relation}__tenant_id': F('tenant_id')}).count()
            if mismatched:
                issues.append(f"{mismatched} row(s) where {label} crosses tenants")
            else:
                self.stdout.write(f"  ✅ {label}")
        return issues
