"""
课程内容服务 - module > chapter > lesson
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.db.models import Max

from .base import TenantScopedService
from ..constants import ACTION_DELETE, ACTION_UPDATE, AUDIT_ACTIONS, CONTENT_PARENT_TYPES
from ..exceptions import ValidationError
from ..models import AuditLog, Course, CourseContent
from ..tenancy import RequestContext, guarded_mutation


logger = logging.getLogger(__name__)


class ContentService(TenantScopedService):
    """课程内容服务"""

    model = CourseContent
    editable_fields = ['title', 'description', 'content_url', 'is_required']

    def list_contents(
        self,
        principal,
        request_context: Optional[RequestContext],
        course_id,
        content_type: Optional[str] = None,
        tree: bool = False
    ) -> List[Any]:
        """
        课程内容列表

        tree=True 时返回嵌套结构 [{'content': ..., 'children': [...]}]
        """
        course = self.get_parent(Course, principal, request_context, course_id)
        queryset = self.repository.queryset(principal, request_context).filter(course=course)
        if content_type and not tree:
            queryset = queryset.filter(content_type=content_type)
        contents = list(queryset.order_by('position', 'created_at'))
        if tree:
            return self.build_tree(contents)
        return contents

    @staticmethod
    def build_tree(contents: List[CourseContent]) -> List[Dict[str, Any]]:
        nodes = {content.id: {'content': content, 'children': []} for content in contents}
        roots = []
        for content in contents:
            node = nodes[content.id]
            if content.parent_id in nodes:
                nodes[content.parent_id]['children'].append(node)
            else:
                roots.append(node)
        return roots

    def get_content(self, principal, request_context, content_id) -> CourseContent:
        return self.get_scoped(principal, request_context, content_id)

    @staticmethod
    def _clean_duration(value) -> Optional[int]:
        if value in (None, ''):
            return None
        try:
            duration = int(value)
        except (TypeError, ValueError):
            raise ValidationError("duration_mins must be an integer")
        if duration < 0:
            raise ValidationError("duration_mins cannot be negative")
        return duration

    @staticmethod
    def _clean_position(value) -> int:
        try:
            position = int(value)
        except (TypeError, ValueError):
            raise ValidationError("position must be an integer")
        if position < 0:
            raise ValidationError("position cannot be negative")
        return position

    def _resolve_parent(self, principal, request_context, course: Course, content_type: str, parent_id):
        """校验父节点类型与所属课程"""
        expected = CONTENT_PARENT_TYPES[content_type]
        if expected is None:
            if parent_id:
                raise ValidationError(f"A {content_type} cannot have a parent")
            return None
        if not parent_id:
            raise ValidationError(f"A {content_type} requires a parent {expected}")

        parent = self.get_related(CourseContent, principal, request_context, parent_id, 'Parent content')
        if parent.course_id != course.id:
            raise ValidationError("Parent content belongs to another course")
        if parent.content_type != expected:
            raise ValidationError(f"Parent of a {content_type} must be a {expected}")
        return parent

    @guarded_mutation(ACTION_UPDATE, model=Course)
    def create_content(self, principal, request_context, course: Course, data: Dict[str, Any]) -> CourseContent:
        """
        在课程下创建内容节点

        Args:
            data: content_type, title（必填）, parent_id, position, description,
                duration_mins, content_url, is_required

        未指定 position 时追加到同级末尾
        """
        content_type = data.get('content_type')
        if content_type not in CONTENT_PARENT_TYPES:
            raise ValidationError(f"Invalid content type: {content_type}")
        if not (data.get('title') or '').strip():
            raise ValidationError("Content title is required")

        parent = self._resolve_parent(principal, request_context, course, content_type, data.get('parent_id'))
        values = {field: data[field] for field in self.editable_fields if field in data}
        values['duration_mins'] = self._clean_duration(data.get('duration_mins'))

        with transaction.atomic():
            if data.get('position') is not None:
                position = self._clean_position(data['position'])
            else:
                last = CourseContent.objects.filter(course=course, parent=parent).aggregate(last=Max('position'))['last']
                position = 0 if last is None else last + 1

            content = self.repository.create(
                principal,
                request_context,
                tenant_id=course.tenant_id,
                course=course,
                parent=parent,
                content_type=content_type,
                position=position,
                **values
            )

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['CONTENT_CREATED'],
            resource_type='course_content',
            resource_id=content.id,
            metadata={'course_id': str(course.id), 'content_type': content_type},
            tenant_id=content.tenant_id
        )
        self.log(principal).info(f"Content created: {content.id} ({content_type}) in course {course.id}")
        return content

    @guarded_mutation(ACTION_UPDATE)
    def update_content(self, principal, request_context, content: CourseContent, data: Dict[str, Any]) -> CourseContent:
        """更新内容节点，类型与所属课程不可修改"""
        if 'content_type' in data and data['content_type'] != content.content_type:
            raise ValidationError("content_type cannot be changed")

        for field in self.editable_fields:
            if field in data:
                setattr(content, field, data[field])
        if 'title' in data and not (data['title'] or '').strip():
            raise ValidationError("Content title cannot be empty")
        if 'duration_mins' in data:
            content.duration_mins = self._clean_duration(data['duration_mins'])
        if 'position' in data:
            content.position = self._clean_position(data['position'])
        if 'parent_id' in data:
            content.parent = self._resolve_parent(
                principal, request_context, content.course, content.content_type, data['parent_id']
            )

        content.save()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['CONTENT_UPDATED'],
            resource_type='course_content',
            resource_id=content.id,
            metadata={'fields': sorted(data.keys())},
            tenant_id=content.tenant_id
        )
        return content

    @guarded_mutation(ACTION_DELETE)
    def delete_content(self, principal, request_context, content: CourseContent) -> bool:
        """删除内容节点（子节点级联删除）"""
        content_id = content.id
        tenant_id = content.tenant_id
        content.delete()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['CONTENT_DELETED'],
            resource_type='course_content',
            resource_id=content_id,
            tenant_id=tenant_id
        )
        self.log(principal).info(f"Content deleted: {content_id}")
        return True

    @guarded_mutation(ACTION_UPDATE, model=Course)
    def update_content_order(self, principal, request_context, course: Course, order: List[Dict[str, Any]]) -> int:
        """
        批量调整内容顺序

        Args:
            order: [{'id': ..., 'position': ...}]，所有 id 必须属于该课程

        Returns:
            更新的节点数
        """
        if not order:
            raise ValidationError("order cannot be empty")

        positions = {}
        for item in order:
            if not isinstance(item, dict) or 'id' not in item or 'position' not in item:
                raise ValidationError("Each order item requires id and position")
            try:
                content_id = str(uuid.UUID(str(item['id'])))
            except ValueError:
                raise ValidationError(f"Invalid content id: {item['id']}")
            positions[content_id] = self._clean_position(item['position'])

        contents = {
            str(content.id): content
            for content in self.repository.filter(principal, request_context, course=course, id__in=list(positions))
        }
        missing = sorted(set(positions) - set(contents))
        if missing:
            raise ValidationError(f"Content not found in course: {', '.join(missing)}")

        with transaction.atomic():
            for content_id, position in positions.items():
                content = contents[content_id]
                if content.position != position:
                    content.position = position
                    content.save(update_fields=['position', 'updated_at'])

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['CONTENT_REORDERED'],
            resource_type='course',
            resource_id=course.id,
            metadata={'count': len(positions)},
            tenant_id=course.tenant_id
        )
        self.log(principal).info(f"Content reordered in course {course.id}: {len(positions)} items")
        return len(positions)
