"""
测试课程相关服务：分类、课程、报名、排课
"""

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from .base import TwoTenantsMixin, make_principal
from ..constants import AUDIT_ACTIONS
from ..exceptions import NotFoundError, PermissionDenied, TenantMismatchError, ValidationError
from ..models import AuditLog, Category, ClassSession, Course, Enrollment, User
from ..services import CategoryService, ClassScheduleService, CourseService, EnrollmentService
from ..tenancy import RequestContext


class CategoryServiceTest(TwoTenantsMixin, TestCase):
    """测试分类服务"""

    def setUp(self):
        self.create_tenants()
        self.service = CategoryService()

    def test_list_only_own_tenant(self):
        """测试列表只包含本租户分类"""
        result = self.service.list_categories(self.admin_a)

        self.assertEqual(result['items'], [self.category_a])
        self.assertEqual(result['pagination']['total'], 1)

    def test_create_category(self):
        """测试创建分类"""
        category = self.service.create_category(self.admin_a, None, {'name': 'Physics & Chemistry'})

        self.assertEqual(category.tenant_id, 'tenant-a')
        self.assertEqual(category.slug, 'physics-chemistry')
        self.assertTrue(AuditLog.objects.filter(action=AUDIT_ACTIONS['CATEGORY_CREATED']).exists())

    def test_same_slug_in_different_tenants(self):
        """测试不同租户可以使用相同slug，同租户不行"""
        with self.assertRaises(ValidationError):
            self.service.create_category(self.admin_a, None, {'name': 'Math'})

        category = self.service.create_category(self.super_admin, None, {'name': 'Math', 'tenant_id': 'tenant-b', 'slug': 'math-2'})
        self.assertEqual(category.tenant_id, 'tenant-b')

    def test_create_with_foreign_parent(self):
        """测试父分类必须在作用域内"""
        with self.assertRaises(ValidationError):
            self.service.create_category(self.admin_a, None, {'name': 'Algebra', 'parent_id': self.category_b.id})

    def test_create_child_inherits_parent_tenant(self):
        """测试 super_admin 创建子分类时租户取父分类"""
        child = self.service.create_category(
            self.super_admin, None, {'name': 'Trigonometry', 'parent_id': self.category_b.id}
        )

        self.assertEqual(child.tenant_id, 'tenant-b')
        self.assertEqual(child.parent, self.category_b)

    def test_update_foreign_category_forbidden(self):
        """测试不能修改其他租户的分类"""
        with self.assertRaises(PermissionDenied):
            self.service.update_category(self.admin_a, None, self.category_b.id, {'name': 'Hacked'})

        self.category_b.refresh_from_db()
        self.assertEqual(self.category_b.name, 'Math')

    def test_update_category(self):
        """测试修改分类"""
        category = self.service.update_category(self.admin_a, None, self.category_a.id, {'name': 'Mathematics', 'sort_order': 3})

        self.assertEqual(category.name, 'Mathematics')
        self.assertEqual(category.sort_order, 3)

    def test_category_cannot_be_own_parent(self):
        """测试分类不能以自己为父分类"""
        with self.assertRaises(ValidationError):
            self.service.update_category(self.admin_a, None, self.category_a.id, {'parent_id': self.category_a.id})

    def test_category_parent_cycle(self):
        """测试不能把分类挂到自己的子孙分类下"""
        child = Category.objects.create(tenant=self.tenant_a, name='Linear', slug='linear', parent=self.category_a)
        grandchild = Category.objects.create(tenant=self.tenant_a, name='Matrices', slug='matrices', parent=child)

        with self.assertRaises(ValidationError):
            self.service.update_category(self.admin_a, None, self.category_a.id, {'parent_id': child.id})
        with self.assertRaises(ValidationError):
            self.service.update_category(self.admin_a, None, self.category_a.id, {'parent_id': grandchild.id})

        self.category_a.refresh_from_db()
        self.assertIsNone(self.category_a.parent_id)

    def test_category_move_to_sibling(self):
        """测试移动到非子孙分类下是允许的"""
        other = Category.objects.create(tenant=self.tenant_a, name='Physics', slug='physics')

        category = self.service.update_category(self.admin_a, None, self.category_a.id, {'parent_id': other.id})

        self.assertEqual(category.parent, other)

    def test_delete_category_with_courses(self):
        """测试仍有课程的分类不能删除"""
        with self.assertRaises(ValidationError):
            self.service.delete_category(self.admin_a, None, self.category_a.id)

    def test_delete_category(self):
        """测试删除分类"""
        empty = Category.objects.create(tenant=self.tenant_a, name='Empty', slug='empty')

        self.assertTrue(self.service.delete_category(self.admin_a, None, empty.id))
        self.assertFalse(Category.objects.filter(pk=empty.pk).exists())

    def test_get_foreign_category_not_found(self):
        """测试读取其他租户分类视为不存在"""
        with self.assertRaises(NotFoundError):
            self.service.get_category(self.admin_a, None, self.category_b.id)


class CourseServiceTest(TwoTenantsMixin, TestCase):
    """测试课程服务"""

    def setUp(self):
        self.create_tenants()
        self.service = CourseService()

    def test_list_courses_isolated(self):
        """测试租户A只看到租户A的课程"""
        result = self.service.list_courses(self.admin_a)

        self.assertEqual(result['items'], [self.course_a])

    def test_list_courses_exempt(self):
        """测试 super_admin 看到全部课程"""
        result = self.service.list_courses(self.super_admin)

        self.assertEqual(set(result['items']), {self.course_a, self.course_b})

    def test_filters_cannot_widen_scope(self):
        """测试按其他租户的分类过滤得到空结果"""
        result = self.service.list_courses(self.admin_a, category_id=self.category_b.id)

        self.assertEqual(result['items'], [])

    def test_search_and_status(self):
        """测试搜索与状态过滤"""
        self.assertEqual(self.service.list_courses(self.admin_a, search='alg')['items'], [self.course_a])
        self.assertEqual(self.service.list_courses(self.admin_a, status='published')['items'], [])

        with self.assertRaises(ValidationError):
            self.service.list_courses(self.admin_a, status='unknown')

    def test_pagination(self):
        """测试分页"""
        for index in range(5):
            Course.objects.create(tenant=self.tenant_a, title=f'Course {index}', slug=f'course-{index}')

        result = self.service.list_courses(self.admin_a, page=2, per_page=4)

        self.assertEqual(len(result['items']), 2)
        self.assertEqual(result['pagination'], {'current_page': 2, 'last_page': 2, 'per_page': 4, 'total': 6})

    def test_pagination_out_of_range(self):
        """测试页码超出范围时返回最后一页"""
        result = self.service.list_courses(self.admin_a, page=99)

        self.assertEqual(result['pagination']['current_page'], 1)

    def test_invalid_pagination(self):
        """测试非法分页参数"""
        with self.assertRaises(ValidationError):
            self.service.list_courses(self.admin_a, page='abc')

    def test_create_course(self):
        """测试创建课程"""
        course = self.service.create_course(self.admin_a, None, {
            'title': 'Algebra',
            'category_id': self.category_a.id,
            'instructor_id': self.instructor_a.id,
            'price': '19.90',
        })

        self.assertEqual(course.tenant_id, 'tenant-a')
        self.assertEqual(course.slug, 'algebra-2')
        self.assertEqual(course.status, 'draft')
        self.assertEqual(course.price, Decimal('19.90'))
        self.assertEqual(course.instructor, self.instructor_a)

    def test_create_course_in_foreign_tenant(self):
        """测试不能在其他租户创建课程"""
        with self.assertRaises(TenantMismatchError):
            self.service.create_course(self.admin_a, None, {'title': 'X', 'tenant_id': 'tenant-b'})

    def test_create_course_with_foreign_category(self):
        """测试分类不在作用域内"""
        with self.assertRaises(ValidationError):
            self.service.create_course(self.admin_a, None, {'title': 'X', 'category_id': self.category_b.id})

    def test_exempt_create_infers_tenant_from_category(self):
        """测试 super_admin 创建课程时从分类推断租户"""
        course = self.service.create_course(self.super_admin, None, {'title': 'Topology', 'category_id': self.category_b.id})

        self.assertEqual(course.tenant_id, 'tenant-b')

    def test_exempt_create_rejects_mixed_tenants(self):
        """测试 super_admin 不能把其他租户的老师挂到课程上"""
        with self.assertRaises(ValidationError):
            self.service.create_course(self.super_admin, None, {
                'title': 'Mixed', 'tenant_id': 'tenant-b', 'instructor_id': self.instructor_a.id
            })

    def test_exempt_create_requires_tenant(self):
        """测试 super_admin 创建课程时必须能确定租户"""
        with self.assertRaises(ValidationError):
            self.service.create_course(self.super_admin, None, {'title': 'Nowhere'})

    def test_create_validation(self):
        """测试课程参数校验"""
        with self.assertRaises(ValidationError):
            self.service.create_course(self.admin_a, None, {'title': '  '})
        with self.assertRaises(ValidationError):
            self.service.create_course(self.admin_a, None, {'title': 'X', 'price': -1})
        with self.assertRaises(ValidationError):
            self.service.create_course(self.admin_a, None, {'title': 'X', 'level': 'expert'})

    def test_update_foreign_course_forbidden(self):
        """测试租户A的主体修改租户B的课程返回禁止访问"""
        with self.assertRaises(PermissionDenied):
            self.service.update_course(self.admin_a, None, self.course_b.id, {'title': 'Hacked'})

        self.course_b.refresh_from_db()
        self.assertEqual(self.course_b.title, 'Geometry')

    def test_exempt_updates_any_course(self):
        """测试 super_admin 可以修改任意课程"""
        course = self.service.update_course(self.super_admin, None, self.course_b.id, {'title': 'Solid Geometry'})

        self.assertEqual(course.title, 'Solid Geometry')

    def test_update_course_status(self):
        """测试修改状态为发布时写入发布时间"""
        course = self.service.update_course(self.admin_a, None, self.course_a.id, {'status': 'published'})

        self.assertTrue(course.is_published)
        self.assertIsNotNone(course.published_at)

    def test_update_cannot_change_tenant(self):
        """测试更新时忽略 tenant_id"""
        course = self.service.update_course(self.admin_a, None, self.course_a.id, {'tenant_id': 'tenant-b', 'title': 'Algebra I'})

        self.assertEqual(course.tenant_id, 'tenant-a')

    def test_publish_course(self):
        """测试发布课程"""
        course = self.service.publish_course(self.admin_a, None, self.course_a.id)

        self.assertEqual(course.status, 'published')
        self.assertTrue(AuditLog.objects.filter(action=AUDIT_ACTIONS['COURSE_PUBLISHED']).exists())

    def test_publish_foreign_course(self):
        """测试不能发布其他租户的课程"""
        with self.assertRaises(PermissionDenied):
            self.service.publish_course(self.admin_a, None, self.course_b.id)

    def test_delete_course(self):
        """测试删除课程"""
        self.assertTrue(self.service.delete_course(self.admin_a, None, self.course_a.id))
        self.assertFalse(Course.objects.filter(pk=self.course_a.pk).exists())

    def test_delete_foreign_course(self):
        """测试不能删除其他租户的课程"""
        with self.assertRaises(PermissionDenied):
            self.service.delete_course(self.admin_a, None, self.course_b.id)
        self.assertTrue(Course.objects.filter(pk=self.course_b.pk).exists())

    def test_delete_missing_course(self):
        """测试删除不存在的课程"""
        with self.assertRaises(NotFoundError):
            self.service.delete_course(self.admin_a, None, '00000000-0000-0000-0000-000000000000')

    def test_course_stats(self):
        """测试课程统计"""
        self.create_enrollment(self.course_a, self.student_a, progress=40)
        other = self.create_tenant_student('second@a.example.com')
        self.create_enrollment(self.course_a, other, status='completed', progress=100)
        self.create_session(self.course_a)

        stats = self.service.get_course_stats(self.admin_a, None, self.course_a.id)

        self.assertEqual(stats['total_enrollments'], 2)
        self.assertEqual(stats['active_enrollments'], 1)
        self.assertEqual(stats['completed_enrollments'], 1)
        self.assertEqual(stats['average_progress'], 70.0)
        self.assertEqual(stats['total_sessions'], 1)

    def test_foreign_course_stats(self):
        """测试不能查看其他租户课程统计"""
        with self.assertRaises(NotFoundError):
            self.service.get_course_stats(self.admin_a, None, self.course_b.id)

    def create_tenant_student(self, email):
        return User.objects.create_user(email=email, password='password123', role='student', tenant=self.tenant_a)


class EnrollmentServiceTest(TwoTenantsMixin, TestCase):
    """测试报名服务"""

    def setUp(self):
        self.create_tenants()
        self.service = EnrollmentService()

    def test_enroll_student(self):
        """测试报名"""
        enrollment = self.service.enroll_student(self.admin_a, None, self.course_a.id, self.student_a.id)

        self.assertEqual(enrollment.tenant_id, 'tenant-a')
        self.assertEqual(enrollment.status, 'active')

    def test_enroll_twice(self):
        """测试重复报名"""
        self.service.enroll_student(self.admin_a, None, self.course_a.id, self.student_a.id)

        with self.assertRaises(ValidationError):
            self.service.enroll_student(self.admin_a, None, self.course_a.id, self.student_a.id)

    def test_enroll_foreign_student(self):
        """测试不能为其他租户的学生报名"""
        with self.assertRaises(ValidationError):
            self.service.enroll_student(self.admin_a, None, self.course_a.id, self.student_b.id)

    def test_exempt_cross_tenant_enrollment(self):
        """测试 super_admin 也不能跨租户报名"""
        with self.assertRaises(TenantMismatchError):
            self.service.enroll_student(self.super_admin, None, self.course_a.id, self.student_b.id)

    def test_enroll_non_student(self):
        """测试只有学生可以报名"""
        with self.assertRaises(ValidationError):
            self.service.enroll_student(self.admin_a, None, self.course_a.id, self.instructor_a.id)

    def test_update_progress_completes(self):
        """测试进度达到100自动完成"""
        enrollment = self.create_enrollment(self.course_a, self.student_a)

        enrollment = self.service.update_enrollment(self.admin_a, None, enrollment.id, {'progress': 100})

        self.assertEqual(enrollment.status, 'completed')
        self.assertIsNotNone(enrollment.completed_at)

    def test_reopen_clears_completed_at(self):
        """测试重新激活时清除完成时间"""
        enrollment = self.create_enrollment(self.course_a, self.student_a, status='completed', completed_at=timezone.now())

        enrollment = self.service.update_enrollment(self.admin_a, None, enrollment.id, {'status': 'active'})

        self.assertIsNone(enrollment.completed_at)

    def test_invalid_progress(self):
        """测试进度范围"""
        enrollment = self.create_enrollment(self.course_a, self.student_a)

        with self.assertRaises(ValidationError):
            self.service.update_enrollment(self.admin_a, None, enrollment.id, {'progress': 120})

    def test_update_foreign_enrollment(self):
        """测试不能修改其他租户的报名"""
        enrollment = self.create_enrollment(self.course_b, self.student_b)

        with self.assertRaises(PermissionDenied):
            self.service.update_enrollment(self.admin_a, None, enrollment.id, {'progress': 50})

    def test_list_and_delete(self):
        """测试列表与删除"""
        own = self.create_enrollment(self.course_a, self.student_a)
        self.create_enrollment(self.course_b, self.student_b)

        self.assertEqual(self.service.list_enrollments(self.admin_a)['items'], [own])
        self.assertTrue(self.service.delete_enrollment(self.admin_a, None, own.id))
        self.assertFalse(Enrollment.objects.filter(pk=own.pk).exists())


class ClassScheduleServiceTest(TwoTenantsMixin, TestCase):
    """测试排课服务"""

    def setUp(self):
        self.create_tenants()
        self.service = ClassScheduleService()
        self.start = timezone.now() + timedelta(days=1)

    def test_schedule_session(self):
        """测试排课"""
        session = self.service.schedule_session(self.admin_a, None, {
            'course_id': self.course_a.id,
            'tutor_id': self.instructor_a.id,
            'scheduled_at': self.start.isoformat(),
            'duration_mins': 45,
        })

        self.assertEqual(session.tenant_id, 'tenant-a')
        self.assertEqual(session.duration_mins, 45)
        self.assertEqual(session.ends_at, session.scheduled_at + timedelta(minutes=45))

    def test_schedule_naive_datetime(self):
        """测试不带时区的时间按当前时区处理"""
        session = self.service.schedule_session(self.admin_a, None, {
            'course_id': self.course_a.id, 'scheduled_at': '2030-01-01T09:00:00'
        })

        self.assertTrue(timezone.is_aware(session.scheduled_at))

    def test_schedule_for_foreign_course(self):
        """测试不能为其他租户的课程排课"""
        with self.assertRaises(ValidationError):
            self.service.schedule_session(self.admin_a, None, {
                'course_id': self.course_b.id, 'scheduled_at': self.start
            })

    def test_schedule_with_foreign_tutor(self):
        """测试 super_admin 排课时老师必须同租户"""
        with self.assertRaises(ValidationError):
            self.service.schedule_session(self.super_admin, None, {
                'course_id': self.course_b.id, 'tutor_id': self.instructor_a.id, 'scheduled_at': self.start
            })

    def test_schedule_validation(self):
        """测试排课参数校验"""
        with self.assertRaises(ValidationError):
            self.service.schedule_session(self.admin_a, None, {'course_id': self.course_a.id})
        with self.assertRaises(ValidationError):
            self.service.schedule_session(self.admin_a, None, {
                'course_id': self.course_a.id, 'scheduled_at': 'tomorrow'
            })
        with self.assertRaises(ValidationError):
            self.service.schedule_session(self.admin_a, None, {
                'course_id': self.course_a.id, 'scheduled_at': self.start, 'duration_mins': 0
            })

    def test_list_sessions_window(self):
        """测试按时间窗口过滤"""
        inside = self.create_session(self.course_a, scheduled_at=self.start)
        self.create_session(self.course_a, scheduled_at=self.start + timedelta(days=10))
        self.create_session(self.course_b, scheduled_at=self.start)

        result = self.service.list_sessions(
            self.admin_a, None, start=self.start - timedelta(hours=1), end=self.start + timedelta(days=1)
        )

        self.assertEqual(result['items'], [inside])

    def test_list_sessions_invalid_window(self):
        """测试结束时间必须晚于开始时间"""
        with self.assertRaises(ValidationError):
            self.service.list_sessions(self.admin_a, None, start=self.start, end=self.start)

    def test_cancel_session(self):
        """测试取消课堂"""
        session = self.create_session(self.course_a)

        session = self.service.cancel_session(self.admin_a, None, session.id, 'Teacher sick')

        self.assertTrue(session.is_cancelled)
        audit = AuditLog.objects.get(action=AUDIT_ACTIONS['SESSION_CANCELLED'])
        self.assertEqual(audit.metadata['reason'], 'Teacher sick')

    def test_update_cancelled_session(self):
        """测试已取消的课堂不能修改"""
        session = self.create_session(self.course_a, status='cancelled')

        with self.assertRaises(ValidationError):
            self.service.update_session(self.admin_a, None, session.id, {'title': 'Moved'})

    def test_update_session(self):
        """测试修改课堂"""
        session = self.create_session(self.course_a)
        new_time = self.start + timedelta(hours=2)

        session = self.service.update_session(self.admin_a, None, session.id, {
            'scheduled_at': new_time, 'duration_mins': 30, 'title': 'Moved'
        })

        self.assertEqual(session.scheduled_at, new_time)
        self.assertEqual(session.duration_mins, 30)

    def test_foreign_session_mutations(self):
        """测试不能修改、取消或删除其他租户的课堂"""
        session = self.create_session(self.course_b)

        with self.assertRaises(PermissionDenied):
            self.service.update_session(self.admin_a, None, session.id, {'title': 'Hacked'})
        with self.assertRaises(PermissionDenied):
            self.service.cancel_session(self.admin_a, None, session.id)
        with self.assertRaises(PermissionDenied):
            self.service.delete_session(self.admin_a, None, session.id)

        session.refresh_from_db()
        self.assertEqual(session.status, 'scheduled')

    def test_tenantless_principal_with_header(self):
        """测试没有租户的主体通过请求头访问"""
        principal = make_principal(role='staff', tenant_id=None)
        self.create_session(self.course_a)
        own_b = self.create_session(self.course_b)

        result = self.service.list_sessions(principal, RequestContext(tenant_hint='tenant-b'))

        self.assertEqual(result['items'], [own_b])
        self.assertEqual(ClassSession.objects.count(), 2)
