"""
Tenant LMS REST API 路由

挂载示例: path('api/v1/', include('tenant_lms.api.urls'))
"""

from django.urls import path

from . import views

app_name = 'tenant_lms'

urlpatterns = [
    # 认证
    path('auth/register', views.RegisterView.as_view(), name='auth-register'),
    path('auth/login', views.LoginView.as_view(), name='auth-login'),
    path('auth/refresh', views.RefreshTokenView.as_view(), name='auth-refresh'),
    path('auth/me', views.MeView.as_view(), name='auth-me'),
    path('auth/change-password', views.ChangePasswordView.as_view(), name='auth-change-password'),

    # 分类
    path('categories', views.CategoryListView.as_view(), name='category-list'),
    path('categories/<str:pk>', views.CategoryDetailView.as_view(), name='category-detail'),

    # 课程
    path('courses', views.CourseListView.as_view(), name='course-list'),
    path('courses/<str:pk>', views.CourseDetailView.as_view(), name='course-detail'),
    path('courses/<str:pk>/publish', views.CoursePublishView.as_view(), name='course-publish'),
    path('courses/<str:pk>/stats', views.CourseStatsView.as_view(), name='course-stats'),
    path('courses/<str:pk>/contents', views.CourseContentListView.as_view(), name='course-content-list'),
    path('courses/<str:pk>/contents/reorder', views.CourseContentReorderView.as_view(), name='course-content-reorder'),

    # 课程内容
    path('contents/<str:pk>', views.CourseContentDetailView.as_view(), name='content-detail'),

    # 报名
    path('enrollments', views.EnrollmentListView.as_view(), name='enrollment-list'),
    path('enrollments/<str:pk>', views.EnrollmentDetailView.as_view(), name='enrollment-detail'),

    # 排课
    path('sessions', views.ClassSessionListView.as_view(), name='session-list'),
    path('sessions/<str:pk>', views.ClassSessionDetailView.as_view(), name='session-detail'),
    path('sessions/<str:pk>/cancel', views.ClassSessionCancelView.as_view(), name='session-cancel'),
    path('sessions/<str:pk>/attendance', views.SessionAttendanceView.as_view(), name='session-attendance'),

    # 出勤
    path('attendance/<str:pk>', views.AttendanceDetailView.as_view(), name='attendance-detail'),

    # 租户设置
    path('tenant/settings', views.TenantSettingsView.as_view(), name='tenant-settings'),

    # 用户
    path('users', views.UserListView.as_view(), name='user-list'),
    path('users/<str:pk>', views.UserDetailView.as_view(), name='user-detail'),
]
