"""
DRF 序列化器

*Serializer: 输出表示
*InputSerializer: 输入校验，更新时使用 partial=True
"""

from rest_framework import serializers

from ..constants import (
    ATTENDANCE_STATUSES,
    CONTENT_TYPES,
    COURSE_LEVELS,
    COURSE_STATUSES,
    ENROLLMENT_STATUSES,
    SESSION_STATUSES,
    TENANT_SETTINGS_SECTIONS,
    USER_ROLES,
)
from ..models import Attendance, Category, ClassSession, Course, CourseContent, Enrollment, User


# ---------- 输出 ----------

class UserSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'display_name', 'role', 'tenant_id',
            'is_active', 'last_login_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = [
            'id', 'tenant_id', 'name', 'slug', 'parent_id', 'description',
            'is_active', 'sort_order', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CourseSerializer(serializers.ModelSerializer):
    category_name = serializers.SerializerMethodField()
    instructor_name = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = [
            'id', 'tenant_id', 'category_id', 'category_name', 'instructor_id',
            'instructor_name', 'title', 'slug', 'description', 'short_description',
            'status', 'level', 'price', 'currency', 'duration_hours',
            'published_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_category_name(self, obj):
        return obj.category.name if obj.category_id else None

    def get_instructor_name(self, obj):
        return obj.instructor.display_name if obj.instructor_id else None


class EnrollmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Enrollment
        fields = [
            'id', 'tenant_id', 'course_id', 'student_id', 'status', 'progress',
            'grade', 'enrolled_at', 'completed_at', 'updated_at',
        ]
        read_only_fields = fields


class ClassSessionSerializer(serializers.ModelSerializer):
    ends_at = serializers.DateTimeField(read_only=True)

    class Meta:
        model = ClassSession
        fields = [
            'id', 'tenant_id', 'course_id', 'tutor_id', 'title', 'scheduled_at',
            'ends_at', 'duration_mins', 'meeting_url', 'is_recorded',
            'recording_url', 'status', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CourseContentSerializer(serializers.ModelSerializer):
    class Meta:
        model = CourseContent
        fields = [
            'id', 'tenant_id', 'course_id', 'parent_id', 'content_type', 'title',
            'description', 'position', 'duration_mins', 'content_url', 'is_required',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CourseContentTreeSerializer(serializers.Serializer):
    """build_tree 返回的嵌套节点"""

    def to_representation(self, instance):
        data = CourseContentSerializer(instance['content']).data
        data['children'] = [self.to_representation(child) for child in instance['children']]
        return data


class AttendanceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Attendance
        fields = [
            'id', 'tenant_id', 'session_id', 'student_id', 'status', 'joined_at',
            'left_at', 'notes', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


# ---------- 认证输入 ----------

class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    password_confirm = serializers.CharField(write_only=True, required=False)
    name = serializers.CharField(required=False, allow_blank=True, default='')
    tenant_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        confirm = attrs.pop('password_confirm', None)
        if confirm is not None and confirm != attrs['password']:
            raise serializers.ValidationError({'password_confirm': 'Passwords do not match'})
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class RefreshTokenSerializer(serializers.Serializer):
    refresh_token = serializers.CharField()


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)


# ---------- 业务输入 ----------

class CategoryInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    slug = serializers.CharField(max_length=255, required=False, allow_blank=True)
    parent_id = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
    sort_order = serializers.IntegerField(required=False)
    tenant_id = serializers.CharField(required=False, allow_null=True)


class CourseInputSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    slug = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    short_description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=list(COURSE_STATUSES.values()), required=False)
    level = serializers.ChoiceField(choices=COURSE_LEVELS, required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    currency = serializers.CharField(max_length=3, required=False)
    duration_hours = serializers.FloatField(min_value=0, required=False, allow_null=True)
    category_id = serializers.UUIDField(required=False, allow_null=True)
    instructor_id = serializers.UUIDField(required=False, allow_null=True)
    tenant_id = serializers.CharField(required=False, allow_null=True)


class EnrollmentCreateSerializer(serializers.Serializer):
    course_id = serializers.UUIDField()
    student_id = serializers.UUIDField()


class EnrollmentUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=list(ENROLLMENT_STATUSES.values()), required=False)
    progress = serializers.IntegerField(min_value=0, max_value=100, required=False)
    grade = serializers.CharField(max_length=10, required=False, allow_null=True, allow_blank=True)


class ClassSessionInputSerializer(serializers.Serializer):
    course_id = serializers.UUIDField()
    tutor_id = serializers.UUIDField(required=False, allow_null=True)
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    scheduled_at = serializers.DateTimeField()
    duration_mins = serializers.IntegerField(min_value=1, required=False)
    meeting_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    is_recorded = serializers.BooleanField(required=False)
    recording_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=list(SESSION_STATUSES.values()), required=False)


class CancelSessionSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class CourseContentInputSerializer(serializers.Serializer):
    content_type = serializers.ChoiceField(choices=list(CONTENT_TYPES.values()))
    title = serializers.CharField(max_length=255)
    parent_id = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)
    position = serializers.IntegerField(min_value=0, required=False)
    duration_mins = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    content_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    is_required = serializers.BooleanField(required=False)


class ContentOrderItemSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    position = serializers.IntegerField(min_value=0)


class ContentOrderSerializer(serializers.Serializer):
    order = ContentOrderItemSerializer(many=True, allow_empty=False)


class AttendanceRecordSerializer(serializers.Serializer):
    student_id = serializers.UUIDField()
    status = serializers.ChoiceField(choices=list(ATTENDANCE_STATUSES.values()), required=False)
    joined_at = serializers.DateTimeField(required=False, allow_null=True)
    left_at = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)


class MarkAttendanceSerializer(serializers.Serializer):
    records = AttendanceRecordSerializer(many=True, allow_empty=False)
    mark_all_as = serializers.ChoiceField(choices=list(ATTENDANCE_STATUSES.values()), required=False)


class UserInputSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=USER_ROLES, required=False)
    is_active = serializers.BooleanField(required=False)
    tenant_id = serializers.CharField(required=False, allow_null=True)


class TenantSettingsInputSerializer(serializers.Serializer):
    tenant_id = serializers.CharField(required=False, allow_null=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for section in TENANT_SETTINGS_SECTIONS:
            self.fields[section] = serializers.DictField(required=False)

    def validate(self, attrs):
        if not any(section in attrs for section in TENANT_SETTINGS_SECTIONS):
            raise serializers.ValidationError(
                f"At least one section is required: {', '.join(TENANT_SETTINGS_SECTIONS)}"
            )
        return attrs
