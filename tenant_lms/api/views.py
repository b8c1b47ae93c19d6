"""
Tenant LMS REST API 视图

成功响应: {"success": true, "data": ...}
列表响应: {"success": true, "data": [...], "pagination": {...}}
错误响应由 tenant_lms_exception_handler 统一生成
"""

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .authentication import JWTAuthentication
from .permissions import HasTenantAccess, IsTenantAdmin
from .serializers import (
    AttendanceSerializer,
    CancelSessionSerializer,
    CategoryInputSerializer,
    CategorySerializer,
    ChangePasswordSerializer,
    ClassSessionInputSerializer,
    ClassSessionSerializer,
    ContentOrderSerializer,
    CourseContentInputSerializer,
    CourseContentSerializer,
    CourseContentTreeSerializer,
    CourseInputSerializer,
    CourseSerializer,
    EnrollmentCreateSerializer,
    EnrollmentSerializer,
    EnrollmentUpdateSerializer,
    LoginSerializer,
    MarkAttendanceSerializer,
    RefreshTokenSerializer,
    RegisterSerializer,
    TenantSettingsInputSerializer,
    UserInputSerializer,
    UserSerializer,
)
from ..models import AuditLog
from ..services import (
    AttendanceService,
    AuthService,
    CategoryService,
    ClassScheduleService,
    ContentService,
    CourseService,
    EnrollmentService,
    TenantSettingsService,
    UserService,
)
from ..tenancy import RequestContext


logger = logging.getLogger(__name__)


def _bool_param(value):
    if value in (None, ''):
        return None
    return str(value).lower() in ('1', 'true', 'yes', 'on')


class TenantAPIView(APIView):
    """需要认证且能解析出租户的视图基类"""

    authentication_classes = [JWTAuthentication]
    permission_classes = [IsAuthenticated, HasTenantAccess]

    def tenant_context(self, request) -> RequestContext:
        return RequestContext.from_request(request)

    @staticmethod
    def ok(data=None, status_code=status.HTTP_200_OK, **extra):
        payload = {'success': True, 'data': data}
        payload.update(extra)
        return Response(payload, status=status_code)

    def paginated(self, result, serializer_class):
        return self.ok(
            serializer_class(result['items'], many=True).data,
            pagination=result['pagination']
        )

    @staticmethod
    def validated(serializer_class, request, partial=False):
        serializer = serializer_class(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        return dict(serializer.validated_data)


# ---------- 认证 ----------

class RegisterView(APIView):
    """POST auth/register"""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = AuthService().register_user(
            email=data['email'],
            password=data['password'],
            name=data.get('name', ''),
            tenant_id=data.get('tenant_id'),
            request_context=RequestContext.from_request(request),
            ip_address=AuditLog._get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', '')
        )
        result.pop('success')
        return Response({'success': True, 'data': result}, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """POST auth/login"""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().authenticate_user(
            email=serializer.validated_data['email'],
            password=serializer.validated_data['password'],
            ip_address=AuditLog._get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', '')
        )
        result.pop('success')
        return Response({'success': True, 'data': result})


class RefreshTokenView(APIView):
    """POST auth/refresh"""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().refresh_access_token(serializer.validated_data['refresh_token'])
        result.pop('success')
        return Response({'success': True, 'data': result})


class MeView(APIView):
    """GET auth/me - 不要求租户，super_admin 也可调用"""

    authentication_classes = [JWTAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'success': True, 'data': UserSerializer(request.user).data})


class ChangePasswordView(APIView):
    """POST auth/change-password"""

    authentication_classes = [JWTAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AuthService().change_password(
            request.user,
            serializer.validated_data['old_password'],
            serializer.validated_data['new_password']
        )
        return Response({'success': True, 'data': None, 'message': 'Password changed'})


# ---------- 分类 ----------

class CategoryListView(TenantAPIView):
    """GET/POST categories"""

    def get(self, request):
        params = request.query_params
        result = CategoryService().list_categories(
            request.user,
            self.tenant_context(request),
            is_active=_bool_param(params.get('is_active')),
            search=params.get('search'),
            page=params.get('page', 1),
            per_page=params.get('per_page')
        )
        return self.paginated(result, CategorySerializer)

    def post(self, request):
        data = self.validated(CategoryInputSerializer, request)
        category = CategoryService().create_category(request.user, self.tenant_context(request), data)
        return self.ok(CategorySerializer(category).data, status.HTTP_201_CREATED)


class CategoryDetailView(TenantAPIView):
    """GET/PATCH/DELETE categories/<pk>"""

    def get(self, request, pk):
        category = CategoryService().get_category(request.user, self.tenant_context(request), pk)
        return self.ok(CategorySerializer(category).data)

    def patch(self, request, pk):
        data = self.validated(CategoryInputSerializer, request, partial=True)
        category = CategoryService().update_category(request.user, self.tenant_context(request), pk, data)
        return self.ok(CategorySerializer(category).data)

    def delete(self, request, pk):
        CategoryService().delete_category(request.user, self.tenant_context(request), pk)
        return self.ok(message='Category deleted')


# ---------- 课程 ----------

class CourseListView(TenantAPIView):
    """GET/POST courses"""

    def get(self, request):
        params = request.query_params
        result = CourseService().list_courses(
            request.user,
            self.tenant_context(request),
            category_id=params.get('category_id'),
            status=params.get('status'),
            search=params.get('search'),
            instructor_id=params.get('instructor_id'),
            page=params.get('page', 1),
            per_page=params.get('per_page')
        )
        return self.paginated(result, CourseSerializer)

    def post(self, request):
        data = self.validated(CourseInputSerializer, request)
        course = CourseService().create_course(request.user, self.tenant_context(request), data)
        return self.ok(CourseSerializer(course).data, status.HTTP_201_CREATED)


class CourseDetailView(TenantAPIView):
    """GET/PATCH/DELETE courses/<pk>"""

    def get(self, request, pk):
        course = CourseService().get_course(request.user, self.tenant_context(request), pk)
        return self.ok(CourseSerializer(course).data)

    def patch(self, request, pk):
        data = self.validated(CourseInputSerializer, request, partial=True)
        course = CourseService().update_course(request.user, self.tenant_context(request), pk, data)
        return self.ok(CourseSerializer(course).data)

    def delete(self, request, pk):
        CourseService().delete_course(request.user, self.tenant_context(request), pk)
        return self.ok(message='Course deleted')


class CoursePublishView(TenantAPIView):
    """POST courses/<pk>/publish"""

    def post(self, request, pk):
        course = CourseService().publish_course(request.user, self.tenant_context(request), pk)
        return self.ok(CourseSerializer(course).data)


class CourseStatsView(TenantAPIView):
    """GET courses/<pk>/stats"""

    def get(self, request, pk):
        stats = CourseService().get_course_stats(request.user, self.tenant_context(request), pk)
        return self.ok(stats)


# ---------- 课程内容 ----------

class CourseContentListView(TenantAPIView):
    """GET/POST courses/<pk>/contents"""

    def get(self, request, pk):
        params = request.query_params
        tree = bool(_bool_param(params.get('tree')))
        contents = ContentService().list_contents(
            request.user,
            self.tenant_context(request),
            pk,
            content_type=params.get('content_type'),
            tree=tree
        )
        if tree:
            return self.ok(CourseContentTreeSerializer(contents, many=True).data)
        return self.ok(CourseContentSerializer(contents, many=True).data)

    def post(self, request, pk):
        data = self.validated(CourseContentInputSerializer, request)
        content = ContentService().create_content(request.user, self.tenant_context(request), pk, data)
        return self.ok(CourseContentSerializer(content).data, status.HTTP_201_CREATED)


class CourseContentReorderView(TenantAPIView):
    """POST courses/<pk>/contents/reorder"""

    def post(self, request, pk):
        data = self.validated(ContentOrderSerializer, request)
        updated = ContentService().update_content_order(
            request.user, self.tenant_context(request), pk, [dict(item) for item in data['order']]
        )
        return self.ok({'updated': updated})


class CourseContentDetailView(TenantAPIView):
    """GET/PATCH/DELETE contents/<pk>"""

    def get(self, request, pk):
        content = ContentService().get_content(request.user, self.tenant_context(request), pk)
        return self.ok(CourseContentSerializer(content).data)

    def patch(self, request, pk):
        data = self.validated(CourseContentInputSerializer, request, partial=True)
        content = ContentService().update_content(request.user, self.tenant_context(request), pk, data)
        return self.ok(CourseContentSerializer(content).data)

    def delete(self, request, pk):
        ContentService().delete_content(request.user, self.tenant_context(request), pk)
        return self.ok(message='Content deleted')


# ---------- 报名 ----------

class EnrollmentListView(TenantAPIView):
    """GET/POST enrollments"""

    def get(self, request):
        params = request.query_params
        result = EnrollmentService().list_enrollments(
            request.user,
            self.tenant_context(request),
            course_id=params.get('course_id'),
            student_id=params.get('student_id'),
            status=params.get('status'),
            page=params.get('page', 1),
            per_page=params.get('per_page')
        )
        return self.paginated(result, EnrollmentSerializer)

    def post(self, request):
        data = self.validated(EnrollmentCreateSerializer, request)
        enrollment = EnrollmentService().enroll_student(
            request.user,
            self.tenant_context(request),
            data['course_id'],
            data['student_id']
        )
        return self.ok(EnrollmentSerializer(enrollment).data, status.HTTP_201_CREATED)


class EnrollmentDetailView(TenantAPIView):
    """GET/PATCH/DELETE enrollments/<pk>"""

    def get(self, request, pk):
        enrollment = EnrollmentService().get_enrollment(request.user, self.tenant_context(request), pk)
        return self.ok(EnrollmentSerializer(enrollment).data)

    def patch(self, request, pk):
        data = self.validated(EnrollmentUpdateSerializer, request, partial=True)
        enrollment = EnrollmentService().update_enrollment(request.user, self.tenant_context(request), pk, data)
        return self.ok(EnrollmentSerializer(enrollment).data)

    def delete(self, request, pk):
        EnrollmentService().delete_enrollment(request.user, self.tenant_context(request), pk)
        return self.ok(message='Enrollment deleted')


# ---------- 排课 ----------

class ClassSessionListView(TenantAPIView):
    """GET/POST sessions"""

    def get(self, request):
        params = request.query_params
        result = ClassScheduleService().list_sessions(
            request.user,
            self.tenant_context(request),
            course_id=params.get('course_id'),
            tutor_id=params.get('tutor_id'),
            status=params.get('status'),
            start=params.get('start'),
            end=params.get('end'),
            page=params.get('page', 1),
            per_page=params.get('per_page')
        )
        return self.paginated(result, ClassSessionSerializer)

    def post(self, request):
        data = self.validated(ClassSessionInputSerializer, request)
        session = ClassScheduleService().schedule_session(request.user, self.tenant_context(request), data)
        return self.ok(ClassSessionSerializer(session).data, status.HTTP_201_CREATED)


class ClassSessionDetailView(TenantAPIView):
    """GET/PATCH/DELETE sessions/<pk>"""

    def get(self, request, pk):
        session = ClassScheduleService().get_session(request.user, self.tenant_context(request), pk)
        return self.ok(ClassSessionSerializer(session).data)

    def patch(self, request, pk):
        data = self.validated(ClassSessionInputSerializer, request, partial=True)
        data.pop('course_id', None)
        session = ClassScheduleService().update_session(request.user, self.tenant_context(request), pk, data)
        return self.ok(ClassSessionSerializer(session).data)

    def delete(self, request, pk):
        ClassScheduleService().delete_session(request.user, self.tenant_context(request), pk)
        return self.ok(message='Session deleted')


class ClassSessionCancelView(TenantAPIView):
    """POST sessions/<pk>/cancel"""

    def post(self, request, pk):
        data = self.validated(CancelSessionSerializer, request)
        session = ClassScheduleService().cancel_session(
            request.user, self.tenant_context(request), pk, data.get('reason', '')
        )
        return self.ok(ClassSessionSerializer(session).data)


# ---------- 出勤 ----------

class SessionAttendanceView(TenantAPIView):
    """GET/POST sessions/<pk>/attendance"""

    def get(self, request, pk):
        result = AttendanceService().list_attendance(
            request.user, self.tenant_context(request), pk, status=request.query_params.get('status')
        )
        return self.ok(AttendanceSerializer(result['items'], many=True).data, summary=result['summary'])

    def post(self, request, pk):
        data = self.validated(MarkAttendanceSerializer, request)
        marked = AttendanceService().update_attendance(
            request.user,
            self.tenant_context(request),
            pk,
            [dict(record) for record in data['records']],
            mark_all_as=data.get('mark_all_as')
        )
        return self.ok(AttendanceSerializer(marked, many=True).data)


class AttendanceDetailView(TenantAPIView):
    """DELETE attendance/<pk>"""

    def delete(self, request, pk):
        AttendanceService().delete_attendance(request.user, self.tenant_context(request), pk)
        return self.ok(message='Attendance deleted')


# ---------- 租户设置 ----------

class TenantSettingsView(TenantAPIView):
    """GET/PATCH tenant/settings"""

    def get_permissions(self):
        permissions = super().get_permissions()
        if self.request.method not in ('GET', 'HEAD', 'OPTIONS'):
            permissions.append(IsTenantAdmin())
        return permissions

    def get(self, request):
        result = TenantSettingsService().get_settings(
            request.user,
            self.tenant_context(request),
            tenant_id=request.query_params.get('tenant_id')
        )
        return self.ok(result)

    def patch(self, request):
        data = self.validated(TenantSettingsInputSerializer, request)
        service = TenantSettingsService()
        context = self.tenant_context(request)
        tenant_id = service.target_tenant_id(request.user, context, data.pop('tenant_id', None))
        result = service.update_settings(request.user, context, tenant_id, data)
        return self.ok(result)


# ---------- 用户 ----------

class UserListView(TenantAPIView):
    """GET/POST users"""

    def get_permissions(self):
        permissions = super().get_permissions()
        if self.request.method == 'POST':
            permissions.append(IsTenantAdmin())
        return permissions

    def get(self, request):
        params = request.query_params
        result = UserService().list_users(
            request.user,
            self.tenant_context(request),
            role=params.get('role'),
            search=params.get('search'),
            is_active=_bool_param(params.get('is_active')),
            page=params.get('page', 1),
            per_page=params.get('per_page')
        )
        return self.paginated(result, UserSerializer)

    def post(self, request):
        data = self.validated(UserInputSerializer, request)
        user = UserService().create_user(request.user, self.tenant_context(request), data)
        return self.ok(UserSerializer(user).data, status.HTTP_201_CREATED)


class UserDetailView(TenantAPIView):
    """GET/PATCH/DELETE users/<pk>"""

    def get_permissions(self):
        permissions = super().get_permissions()
        if self.request.method == 'DELETE':
            permissions.append(IsTenantAdmin())
        return permissions

    def get(self, request, pk):
        user = UserService().get_user(request.user, self.tenant_context(request), pk)
        return self.ok(UserSerializer(user).data)

    def patch(self, request, pk):
        data = self.validated(UserInputSerializer, request, partial=True)
        user = UserService().update_user(request.user, self.tenant_context(request), pk, data)
        return self.ok(UserSerializer(user).data)

    def delete(self, request, pk):
        UserService().delete_user(request.user, self.tenant_context(request), pk)
        return self.ok(message='User deleted')
