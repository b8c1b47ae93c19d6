"""
测试课程内容与出勤服务
"""

import uuid
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from .base import TwoTenantsMixin
from ..constants import AUDIT_ACTIONS
from ..exceptions import NotFoundError, PermissionDenied, ValidationError
from ..models import Attendance, AuditLog, Course, CourseContent, User
from ..services import AttendanceService, ContentService


class ContentServiceTest(TwoTenantsMixin, TestCase):
    """测试课程内容服务"""

    def setUp(self):
        self.create_tenants()
        self.service = ContentService()

    def create_outline(self, principal, course):
        module = self.service.create_content(principal, None, course.id, {
            'content_type': 'module', 'title': 'Basics'
        })
        chapter = self.service.create_content(principal, None, course.id, {
            'content_type': 'chapter', 'title': 'Equations', 'parent_id': module.id
        })
        lesson = self.service.create_content(principal, None, course.id, {
            'content_type': 'lesson', 'title': 'Linear', 'parent_id': chapter.id, 'duration_mins': 45
        })
        return module, chapter, lesson

    def test_create_outline(self):
        """测试创建 module > chapter > lesson"""
        module, chapter, lesson = self.create_outline(self.instructor_a, self.course_a)

        self.assertEqual(module.tenant_id, 'tenant-a')
        self.assertIsNone(module.parent)
        self.assertEqual(chapter.parent, module)
        self.assertEqual(lesson.parent, chapter)
        self.assertEqual(lesson.duration_mins, 45)
        self.assertEqual(
            AuditLog.objects.filter(action=AUDIT_ACTIONS['CONTENT_CREATED'], tenant_id='tenant-a').count(), 3
        )

    def test_position_appends_to_siblings(self):
        """测试未指定 position 时追加到同级末尾"""
        first = self.service.create_content(self.admin_a, None, self.course_a.id, {
            'content_type': 'module', 'title': 'One'
        })
        second = self.service.create_content(self.admin_a, None, self.course_a.id, {
            'content_type': 'module', 'title': 'Two'
        })
        child = self.service.create_content(self.admin_a, None, self.course_a.id, {
            'content_type': 'chapter', 'title': 'Child', 'parent_id': second.id
        })

        self.assertEqual(first.position, 0)
        self.assertEqual(second.position, 1)
        self.assertEqual(child.position, 0)

    def test_parent_type_rules(self):
        """测试父节点类型校验"""
        module, _, _ = self.create_outline(self.admin_a, self.course_a)

        cases = [
            {'content_type': 'module', 'title': 'Nested', 'parent_id': module.id},
            {'content_type': 'chapter', 'title': 'Orphan'},
            {'content_type': 'lesson', 'title': 'Skip', 'parent_id': module.id},
            {'content_type': 'quiz', 'title': 'Unknown'},
            {'content_type': 'module', 'title': '  '},
        ]
        for data in cases:
            with self.subTest(data=data):
                with self.assertRaises(ValidationError):
                    self.service.create_content(self.admin_a, None, self.course_a.id, data)

    def test_parent_from_other_course(self):
        """测试父节点必须属于同一课程"""
        other = Course.objects.create(tenant=self.tenant_a, title='Calculus', slug='calculus')
        module = self.service.create_content(self.admin_a, None, other.id, {
            'content_type': 'module', 'title': 'Limits'
        })

        with self.assertRaises(ValidationError):
            self.service.create_content(self.admin_a, None, self.course_a.id, {
                'content_type': 'chapter', 'title': 'Wrong', 'parent_id': module.id
            })

    def test_parent_from_foreign_tenant(self):
        """测试不能挂到其他租户的内容下"""
        foreign = CourseContent.objects.create(
            tenant=self.tenant_b, course=self.course_b, content_type='module', title='B'
        )

        with self.assertRaises(ValidationError):
            self.service.create_content(self.admin_a, None, self.course_a.id, {
                'content_type': 'chapter', 'title': 'Wrong', 'parent_id': foreign.id
            })
        self.assertFalse(CourseContent.objects.filter(tenant_id='tenant-a').exists())

    def test_create_in_foreign_course(self):
        """测试不能在其他租户的课程下创建内容"""
        with self.assertRaises(PermissionDenied):
            self.service.create_content(self.admin_a, None, self.course_b.id, {
                'content_type': 'module', 'title': 'Injected'
            })
        with self.assertRaises(NotFoundError):
            self.service.create_content(self.admin_a, None, uuid.uuid4(), {
                'content_type': 'module', 'title': 'Missing'
            })
        self.assertFalse(CourseContent.objects.exists())

    def test_list_contents(self):
        """测试内容列表按 position 排序并只含本课程"""
        module, chapter, lesson = self.create_outline(self.admin_a, self.course_a)
        CourseContent.objects.create(tenant=self.tenant_b, course=self.course_b, content_type='module', title='B')

        contents = self.service.list_contents(self.student_a, None, self.course_a.id)
        lessons = self.service.list_contents(self.student_a, None, self.course_a.id, content_type='lesson')

        self.assertEqual(set(contents), {module, chapter, lesson})
        self.assertEqual(lessons, [lesson])

    def test_list_contents_tree(self):
        """测试树形列表"""
        module, chapter, lesson = self.create_outline(self.admin_a, self.course_a)

        tree = self.service.list_contents(self.admin_a, None, self.course_a.id, tree=True)

        self.assertEqual(len(tree), 1)
        self.assertEqual(tree[0]['content'], module)
        self.assertEqual(tree[0]['children'][0]['content'], chapter)
        self.assertEqual(tree[0]['children'][0]['children'][0]['content'], lesson)

    def test_foreign_course_contents_not_found(self):
        """测试读取其他租户课程的内容视为不存在"""
        with self.assertRaises(NotFoundError):
            self.service.list_contents(self.admin_a, None, self.course_b.id)

        foreign = CourseContent.objects.create(
            tenant=self.tenant_b, course=self.course_b, content_type='module', title='B'
        )
        with self.assertRaises(NotFoundError):
            self.service.get_content(self.admin_a, None, foreign.id)

    def test_update_content(self):
        """测试更新内容"""
        module, chapter, _ = self.create_outline(self.admin_a, self.course_a)
        other_module = self.service.create_content(self.admin_a, None, self.course_a.id, {
            'content_type': 'module', 'title': 'Advanced'
        })

        chapter = self.service.update_content(self.admin_a, None, chapter.id, {
            'title': 'Quadratics', 'parent_id': other_module.id, 'position': 3
        })

        self.assertEqual(chapter.title, 'Quadratics')
        self.assertEqual(chapter.parent, other_module)
        self.assertEqual(chapter.position, 3)
        with self.assertRaises(ValidationError):
            self.service.update_content(self.admin_a, None, chapter.id, {'content_type': 'lesson'})
        with self.assertRaises(ValidationError):
            self.service.update_content(self.admin_a, None, module.id, {'parent_id': other_module.id})

    def test_foreign_content_mutations(self):
        """测试不能修改或删除其他租户的内容"""
        foreign = CourseContent.objects.create(
            tenant=self.tenant_b, course=self.course_b, content_type='module', title='B'
        )

        with self.assertRaises(PermissionDenied):
            self.service.update_content(self.admin_a, None, foreign.id, {'title': 'Hacked'})
        with self.assertRaises(PermissionDenied):
            self.service.delete_content(self.admin_a, None, foreign.id)

        foreign.refresh_from_db()
        self.assertEqual(foreign.title, 'B')

    def test_delete_cascades_children(self):
        """测试删除模块时级联删除子节点"""
        module, _, _ = self.create_outline(self.admin_a, self.course_a)

        self.assertTrue(self.service.delete_content(self.admin_a, None, module.id))

        self.assertFalse(CourseContent.objects.filter(course=self.course_a).exists())
        self.assertTrue(AuditLog.objects.filter(action=AUDIT_ACTIONS['CONTENT_DELETED']).exists())

    def test_update_content_order(self):
        """测试调整内容顺序"""
        first = self.service.create_content(self.admin_a, None, self.course_a.id, {
            'content_type': 'module', 'title': 'One'
        })
        second = self.service.create_content(self.admin_a, None, self.course_a.id, {
            'content_type': 'module', 'title': 'Two'
        })

        updated = self.service.update_content_order(self.admin_a, None, self.course_a.id, [
            {'id': str(first.id), 'position': 1},
            {'id': str(second.id), 'position': 0},
        ])

        self.assertEqual(updated, 2)
        self.assertEqual(self.service.list_contents(self.admin_a, None, self.course_a.id), [second, first])
        self.assertTrue(AuditLog.objects.filter(action=AUDIT_ACTIONS['CONTENT_REORDERED']).exists())

    def test_reorder_rejects_other_course_content(self):
        """测试排序不能包含其他课程或租户的内容"""
        own = self.service.create_content(self.admin_a, None, self.course_a.id, {
            'content_type': 'module', 'title': 'One'
        })
        foreign = CourseContent.objects.create(
            tenant=self.tenant_b, course=self.course_b, content_type='module', title='B', position=5
        )

        with self.assertRaises(ValidationError):
            self.service.update_content_order(self.admin_a, None, self.course_a.id, [
                {'id': str(own.id), 'position': 1},
                {'id': str(foreign.id), 'position': 0},
            ])
        with self.assertRaises(ValidationError):
            self.service.update_content_order(self.admin_a, None, self.course_a.id, [
                {'id': 'not-a-uuid', 'position': 0},
            ])

        foreign.refresh_from_db()
        own.refresh_from_db()
        self.assertEqual(foreign.position, 5)
        self.assertEqual(own.position, 0)

    def test_reorder_foreign_course(self):
        """测试不能调整其他租户课程的顺序"""
        foreign = CourseContent.objects.create(
            tenant=self.tenant_b, course=self.course_b, content_type='module', title='B'
        )

        with self.assertRaises(PermissionDenied):
            self.service.update_content_order(self.admin_a, None, self.course_b.id, [
                {'id': str(foreign.id), 'position': 9},
            ])

    def test_super_admin_creates_in_any_tenant(self):
        """测试 super_admin 在任意租户课程下创建内容"""
        content = self.service.create_content(self.super_admin, None, self.course_b.id, {
            'content_type': 'module', 'title': 'Managed'
        })

        self.assertEqual(content.tenant_id, 'tenant-b')


class AttendanceServiceTest(TwoTenantsMixin, TestCase):
    """测试出勤服务"""

    def setUp(self):
        self.create_tenants()
        self.service = AttendanceService()
        self.session = self.create_session(self.course_a, tutor=self.instructor_a)
        self.create_enrollment(self.course_a, self.student_a)

    def test_mark_attendance(self):
        """测试记录出勤"""
        joined_at = timezone.now()

        marked = self.service.update_attendance(self.instructor_a, None, self.session.id, [
            {'student_id': self.student_a.id, 'joined_at': joined_at, 'left_at': joined_at + timedelta(minutes=50)},
        ])

        self.assertEqual(len(marked), 1)
        self.assertEqual(marked[0].tenant_id, 'tenant-a')
        self.assertEqual(marked[0].status, 'present')
        self.assertTrue(AuditLog.objects.filter(action=AUDIT_ACTIONS['ATTENDANCE_MARKED']).exists())

    def test_mark_again_overwrites(self):
        """测试重复记录覆盖原记录"""
        self.service.update_attendance(self.admin_a, None, self.session.id, [{'student_id': self.student_a.id}])
        self.service.update_attendance(self.admin_a, None, self.session.id, [
            {'student_id': self.student_a.id, 'status': 'late', 'notes': 'Traffic'}
        ])

        attendance = Attendance.objects.get(session=self.session, student=self.student_a)
        self.assertEqual(attendance.status, 'late')
        self.assertEqual(attendance.notes, 'Traffic')
        self.assertEqual(Attendance.objects.count(), 1)

    def test_mark_all_as(self):
        """测试未指定状态的记录使用默认状态"""
        other = User.objects.create_user(
            email='student2@a.example.com', password='x', role='student', tenant=self.tenant_a
        )
        self.create_enrollment(self.course_a, other)

        marked = self.service.update_attendance(self.admin_a, None, self.session.id, [
            {'student_id': self.student_a.id},
            {'student_id': other.id, 'status': 'excused'},
        ], mark_all_as='absent')

        self.assertEqual([record.status for record in marked], ['absent', 'excused'])

    def test_student_must_be_enrolled(self):
        """测试学生必须已报名且未取消"""
        other = User.objects.create_user(
            email='student2@a.example.com', password='x', role='student', tenant=self.tenant_a
        )
        cancelled = User.objects.create_user(
            email='student3@a.example.com', password='x', role='student', tenant=self.tenant_a
        )
        self.create_enrollment(self.course_a, cancelled, status='cancelled')

        for student in (other, cancelled):
            with self.subTest(student=student.email):
                with self.assertRaises(ValidationError):
                    self.service.update_attendance(self.admin_a, None, self.session.id, [{'student_id': student.id}])
        self.assertFalse(Attendance.objects.exists())

    def test_foreign_student(self):
        """测试不能为其他租户学生记录出勤"""
        with self.assertRaises(ValidationError):
            self.service.update_attendance(self.admin_a, None, self.session.id, [{'student_id': self.student_b.id}])
        self.assertFalse(Attendance.objects.exists())

    def test_invalid_records(self):
        """测试无效记录"""
        now = timezone.now()
        cases = [
            [],
            [{'status': 'present'}],
            [{'student_id': self.student_a.id, 'status': 'asleep'}],
            [{'student_id': self.student_a.id, 'joined_at': now, 'left_at': now - timedelta(minutes=1)}],
        ]
        for records in cases:
            with self.subTest(records=records):
                with self.assertRaises(ValidationError):
                    self.service.update_attendance(self.admin_a, None, self.session.id, records)

    def test_cancelled_session(self):
        """测试已取消的课堂不能记录出勤"""
        self.session.status = 'cancelled'
        self.session.save()

        with self.assertRaises(ValidationError):
            self.service.update_attendance(self.admin_a, None, self.session.id, [{'student_id': self.student_a.id}])

    def test_foreign_session(self):
        """测试不能为其他租户课堂记录或读取出勤"""
        session_b = self.create_session(self.course_b)
        self.create_enrollment(self.course_b, self.student_b)

        with self.assertRaises(PermissionDenied):
            self.service.update_attendance(self.admin_a, None, session_b.id, [{'student_id': self.student_b.id}])
        with self.assertRaises(NotFoundError):
            self.service.list_attendance(self.admin_a, None, session_b.id)
        self.assertFalse(Attendance.objects.exists())

    def test_list_attendance_summary(self):
        """测试出勤列表与状态汇总"""
        self.service.update_attendance(self.admin_a, None, self.session.id, [
            {'student_id': self.student_a.id, 'status': 'late'}
        ])

        result = self.service.list_attendance(self.student_a, None, self.session.id)
        absent = self.service.list_attendance(self.student_a, None, self.session.id, status='absent')

        self.assertEqual(len(result['items']), 1)
        self.assertEqual(result['summary']['late'], 1)
        self.assertEqual(result['summary']['present'], 0)
        self.assertEqual(absent['items'], [])

    def test_delete_attendance(self):
        """测试删除出勤记录"""
        attendance = self.service.update_attendance(
            self.admin_a, None, self.session.id, [{'student_id': self.student_a.id}]
        )[0]

        with self.assertRaises(PermissionDenied):
            self.service.delete_attendance(self.admin_b, None, attendance.id)
        self.assertTrue(self.service.delete_attendance(self.admin_a, None, attendance.id))
        self.assertFalse(Attendance.objects.exists())

    def test_super_admin_reads_any_session(self):
        """测试 super_admin 读取任意租户课堂的出勤"""
        session_b = self.create_session(self.course_b)

        result = self.service.list_attendance(self.super_admin, None, session_b.id)

        self.assertEqual(result['items'], [])
