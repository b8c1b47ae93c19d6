import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('tenant_lms', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='CourseContent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('content_type', models.CharField(choices=[('module', 'MODULE'), ('chapter', 'CHAPTER'), ('lesson', 'LESSON')], help_text='类型: module | chapter | lesson', max_length=20)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, default='')),
                ('position', models.PositiveIntegerField(default=0, help_text='同级排序')),
                ('duration_mins', models.PositiveIntegerField(blank=True, null=True)),
                ('content_url', models.URLField(blank=True, default='', max_length=500)),
                ('is_required', models.BooleanField(default=True)),
                ('course', models.ForeignKey(help_text='课程', on_delete=django.db.models.deletion.CASCADE, related_name='contents', to='tenant_lms.course')),
                ('parent', models.ForeignKey(blank=True, help_text='父节点', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='children', to='tenant_lms.coursecontent')),
                ('tenant', models.ForeignKey(help_text='所属租户', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='tenant_lms.tenant')),
            ],
            options={
                'db_table': 'lms_course_content',
                'ordering': ['position', 'created_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['tenant', 'course', 'position'], name='lms_content_tenant_pos_idx'),
                    models.Index(fields=['tenant', 'parent'], name='lms_content_tenant_parent_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Attendance',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('status', models.CharField(choices=[('present', 'PRESENT'), ('absent', 'ABSENT'), ('late', 'LATE'), ('excused', 'EXCUSED'), ('partial', 'PARTIAL')], default='present', help_text='状态: present | absent | late | excused | partial', max_length=20)),
                ('joined_at', models.DateTimeField(blank=True, null=True)),
                ('left_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.CharField(blank=True, default='', max_length=500)),
                ('session', models.ForeignKey(help_text='课堂', on_delete=django.db.models.deletion.CASCADE, related_name='attendances', to='tenant_lms.classsession')),
                ('student', models.ForeignKey(help_text='学生', on_delete=django.db.models.deletion.CASCADE, related_name='attendances', to='tenant_lms.user')),
                ('tenant', models.ForeignKey(help_text='所属租户', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='tenant_lms.tenant')),
            ],
            options={
                'db_table': 'lms_attendance',
                'ordering': ['-created_at'],
                'abstract': False,
                'unique_together': {('session', 'student')},
                'indexes': [
                    models.Index(fields=['tenant', 'session'], name='lms_attend_tenant_session_idx'),
                    models.Index(fields=['tenant', 'student'], name='lms_attend_tenant_student_idx'),
                ],
            },
        ),
    ]
