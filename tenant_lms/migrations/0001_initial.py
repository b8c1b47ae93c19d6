import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

import tenant_lms.models.tenant


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Tenant',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('id', models.CharField(default=tenant_lms.models.tenant.generate_tenant_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='租户名称', max_length=255)),
                ('domain', models.CharField(blank=True, help_text='租户域名', max_length=255, null=True, unique=True)),
                ('description', models.TextField(blank=True, default='', help_text='租户描述')),
                ('status', models.CharField(choices=[('active', 'ACTIVE'), ('inactive', 'INACTIVE'), ('suspended', 'SUSPENDED')], db_index=True, default='active', help_text='状态: active | inactive | suspended', max_length=20)),
                ('settings', models.JSONField(blank=True, default=dict, help_text='租户设置 {general, branding, features, theme, security}')),
            ],
            options={
                'db_table': 'lms_tenant',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('email', models.EmailField(db_index=True, max_length=255, unique=True)),
                ('password_hash', models.CharField(max_length=255)),
                ('name', models.CharField(blank=True, default='', max_length=255)),
                ('role', models.CharField(choices=[('super_admin', 'super_admin'), ('admin', 'admin'), ('staff', 'staff'), ('instructor', 'instructor'), ('tutor', 'tutor'), ('student', 'student')], default='student', help_text='用户角色', max_length=50)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('last_login_at', models.DateTimeField(blank=True, null=True)),
                ('tenant', models.ForeignKey(blank=True, help_text='所属租户，仅 super_admin 可为空', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='users', to='tenant_lms.tenant')),
            ],
            options={
                'db_table': 'lms_user',
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['tenant', 'role'], name='lms_user_tenant_role_idx'),
                    models.Index(fields=['tenant', 'email'], name='lms_user_tenant_email_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(help_text='分类名称', max_length=255)),
                ('slug', models.SlugField(help_text='分类slug，租户内唯一', max_length=255)),
                ('description', models.TextField(blank=True, default='')),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.IntegerField(default=0)),
                ('parent', models.ForeignKey(blank=True, help_text='父分类', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='children', to='tenant_lms.category')),
                ('tenant', models.ForeignKey(help_text='所属租户', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='tenant_lms.tenant')),
            ],
            options={
                'db_table': 'lms_category',
                'ordering': ['sort_order', 'name'],
                'abstract': False,
                'unique_together': {('tenant', 'slug')},
                'indexes': [
                    models.Index(fields=['tenant', 'slug'], name='lms_category_tenant_slug_idx'),
                    models.Index(fields=['tenant', 'is_active'], name='lms_category_tenant_act_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Course',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('title', models.CharField(max_length=255)),
                ('slug', models.SlugField(max_length=255)),
                ('description', models.TextField(blank=True, default='')),
                ('short_description', models.CharField(blank=True, default='', max_length=500)),
                ('status', models.CharField(choices=[('draft', 'DRAFT'), ('published', 'PUBLISHED'), ('archived', 'ARCHIVED')], default='draft', help_text='状态: draft | published | archived', max_length=20)),
                ('level', models.CharField(blank=True, choices=[('beginner', 'beginner'), ('intermediate', 'intermediate'), ('advanced', 'advanced')], default='', max_length=20)),
                ('price', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('currency', models.CharField(default='USD', max_length=3)),
                ('duration_hours', models.FloatField(blank=True, null=True)),
                ('published_at', models.DateTimeField(blank=True, null=True)),
                ('category', models.ForeignKey(blank=True, help_text='所属分类', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='courses', to='tenant_lms.category')),
                ('instructor', models.ForeignKey(blank=True, help_text='主讲老师', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='taught_courses', to='tenant_lms.user')),
                ('tenant', models.ForeignKey(help_text='所属租户', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='tenant_lms.tenant')),
            ],
            options={
                'db_table': 'lms_course',
                'ordering': ['-created_at'],
                'abstract': False,
                'unique_together': {('tenant', 'slug')},
                'indexes': [
                    models.Index(fields=['tenant', 'slug'], name='lms_course_tenant_slug_idx'),
                    models.Index(fields=['tenant', 'status'], name='lms_course_tenant_status_idx'),
                    models.Index(fields=['tenant', 'category'], name='lms_course_tenant_cat_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Enrollment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('status', models.CharField(choices=[('active', 'ACTIVE'), ('completed', 'COMPLETED'), ('cancelled', 'CANCELLED'), ('suspended', 'SUSPENDED')], default='active', help_text='状态: active | completed | cancelled | suspended', max_length=20)),
                ('progress', models.PositiveSmallIntegerField(default=0, help_text='学习进度 0-100', validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('grade', models.CharField(blank=True, max_length=10, null=True)),
                ('enrolled_at', models.DateTimeField(auto_now_add=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('course', models.ForeignKey(help_text='课程', on_delete=django.db.models.deletion.CASCADE, related_name='enrollments', to='tenant_lms.course')),
                ('student', models.ForeignKey(help_text='学生', on_delete=django.db.models.deletion.CASCADE, related_name='enrollments', to='tenant_lms.user')),
                ('tenant', models.ForeignKey(help_text='所属租户', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='tenant_lms.tenant')),
            ],
            options={
                'db_table': 'lms_enrollment',
                'ordering': ['-enrolled_at'],
                'abstract': False,
                'unique_together': {('course', 'student')},
                'indexes': [
                    models.Index(fields=['tenant', 'course'], name='lms_enroll_tenant_course_idx'),
                    models.Index(fields=['tenant', 'student'], name='lms_enroll_tenant_student_idx'),
                    models.Index(fields=['tenant', 'status'], name='lms_enroll_tenant_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ClassSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('title', models.CharField(blank=True, default='', max_length=255)),
                ('scheduled_at', models.DateTimeField(help_text='开课时间')),
                ('duration_mins', models.PositiveIntegerField(default=60)),
                ('meeting_url', models.URLField(blank=True, default='', max_length=500)),
                ('is_recorded', models.BooleanField(default=False)),
                ('recording_url', models.URLField(blank=True, default='', max_length=500)),
                ('status', models.CharField(choices=[('scheduled', 'SCHEDULED'), ('completed', 'COMPLETED'), ('cancelled', 'CANCELLED')], default='scheduled', help_text='状态: scheduled | completed | cancelled', max_length=20)),
                ('course', models.ForeignKey(help_text='课程', on_delete=django.db.models.deletion.CASCADE, related_name='sessions', to='tenant_lms.course')),
                ('tutor', models.ForeignKey(blank=True, help_text='授课老师', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tutored_sessions', to='tenant_lms.user')),
                ('tenant', models.ForeignKey(help_text='所属租户', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='tenant_lms.tenant')),
            ],
            options={
                'db_table': 'lms_class_session',
                'ordering': ['scheduled_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['tenant', 'scheduled_at'], name='lms_session_tenant_sched_idx'),
                    models.Index(fields=['tenant', 'course'], name='lms_session_tenant_course_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Invoice',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('currency', models.CharField(default='USD', max_length=3)),
                ('status', models.CharField(choices=[('pending', 'PENDING'), ('paid', 'PAID'), ('overdue', 'OVERDUE'), ('cancelled', 'CANCELLED')], default='pending', max_length=20)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('payment_method', models.CharField(blank=True, default='', max_length=50)),
                ('notes', models.TextField(blank=True, default='')),
                ('course', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices', to='tenant_lms.course')),
                ('student', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices', to='tenant_lms.user')),
                ('tenant', models.ForeignKey(help_text='所属租户', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='tenant_lms.tenant')),
            ],
            options={
                'db_table': 'lms_invoice',
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['tenant', 'status'], name='lms_invoice_tenant_status_idx'),
                    models.Index(fields=['tenant', 'student'], name='lms_invoice_tenant_student_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('action', models.CharField(db_index=True, help_text='操作类型', max_length=100)),
                ('resource_type', models.CharField(blank=True, help_text='资源类型', max_length=50, null=True)),
                ('resource_id', models.CharField(blank=True, help_text='资源ID', max_length=64, null=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, help_text='IP地址', null=True)),
                ('user_agent', models.TextField(blank=True, help_text='User Agent', null=True)),
                ('metadata', models.JSONField(default=dict, help_text='附加元数据')),
                ('tenant', models.ForeignKey(blank=True, help_text='所属租户', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='audit_logs', to='tenant_lms.tenant')),
                ('user', models.ForeignKey(blank=True, help_text='操作用户', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to='tenant_lms.user')),
            ],
            options={
                'db_table': 'lms_audit_log',
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['tenant', 'created_at'], name='lms_audit_tenant_created_idx'),
                    models.Index(fields=['user'], name='lms_audit_user_idx'),
                    models.Index(fields=['resource_type', 'resource_id'], name='lms_audit_resource_idx'),
                ],
            },
        ),
    ]
