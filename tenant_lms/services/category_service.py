"""
课程分类服务
"""

import logging
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.utils.text import slugify

from .base import TenantScopedService
from ..constants import ACTION_DELETE, ACTION_UPDATE, AUDIT_ACTIONS
from ..exceptions import ValidationError
from ..models import AuditLog, Category
from ..tenancy import RequestContext, guarded_mutation


logger = logging.getLogger(__name__)


class CategoryService(TenantScopedService):
    """课程分类服务"""

    model = Category
    editable_fields = ['name', 'slug', 'description', 'is_active', 'sort_order']

    def list_categories(
        self,
        principal,
        request_context: Optional[RequestContext] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        page: Any = 1,
        per_page: Any = None
    ) -> Dict[str, Any]:
        """分类列表（仅当前租户）"""
        queryset = self.repository.queryset(principal, request_context)
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if search:
            queryset = queryset.filter(name__icontains=search)
        return self.paginate(queryset, page, per_page)

    def get_category(self, principal, request_context, category_id) -> Category:
        return self.get_scoped(principal, request_context, category_id)

    def create_category(self, principal, request_context, data: Dict[str, Any]) -> Category:
        """
        创建分类

        Args:
            data: name（必填）, slug, parent_id, description, is_active, sort_order, tenant_id

        Returns:
            Category: 创建的分类
        """
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError("Category name is required")

        values = {field: data[field] for field in self.editable_fields if field in data}
        values['name'] = name
        values['slug'] = slugify(values.get('slug') or name)
        if not values['slug']:
            raise ValidationError("Category slug cannot be empty")

        parent = self.get_related(Category, principal, request_context, data.get('parent_id'), 'Parent category')
        if parent is not None:
            values['parent'] = parent
            values['tenant_id'] = parent.tenant_id
        elif data.get('tenant_id'):
            values['tenant_id'] = data['tenant_id']

        try:
            with transaction.atomic():
                category = self.repository.create(principal, request_context, **values)
        except IntegrityError:
            raise ValidationError(f"Category slug already exists: {values['slug']}")

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['CATEGORY_CREATED'],
            resource_type='category',
            resource_id=category.id,
            metadata={'name': category.name, 'slug': category.slug},
            tenant_id=category.tenant_id
        )
        self.log(principal).info(f"Category created: {category.id} ({category.slug})")
        return category

    @staticmethod
    def _is_descendant(candidate: Category, ancestor: Category) -> bool:
        """candidate 是否为 ancestor 本身或其子孙（沿父链向上查找）"""
        seen = set()
        node = candidate
        while node is not None and node.pk not in seen:
            if node.pk == ancestor.pk:
                return True
            seen.add(node.pk)
            node = Category.objects.filter(pk=node.parent_id).first() if node.parent_id else None
        return False

    @guarded_mutation(ACTION_UPDATE)
    def update_category(self, principal, request_context, category: Category, data: Dict[str, Any]) -> Category:
        """更新分类"""
        for field in self.editable_fields:
            if field in data:
                setattr(category, field, data[field])
        if 'slug' in data:
            category.slug = slugify(category.slug)

        if 'parent_id' in data:
            parent = self.get_related(Category, principal, request_context, data['parent_id'], 'Parent category')
            if parent is not None and (parent.tenant_id != category.tenant_id or self._is_descendant(parent, category)):
                raise ValidationError("Invalid parent category")
            category.parent = parent

        try:
            with transaction.atomic():
                category.save()
        except IntegrityError:
            raise ValidationError(f"Category slug already exists: {category.slug}")

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['CATEGORY_UPDATED'],
            resource_type='category',
            resource_id=category.id,
            metadata={'fields': sorted(data.keys())},
            tenant_id=category.tenant_id
        )
        return category

    @guarded_mutation(ACTION_DELETE)
    def delete_category(self, principal, request_context, category: Category) -> bool:
        """删除分类；仍有课程引用时拒绝删除"""
        if category.courses.exists():
            raise ValidationError("Cannot delete a category that still has courses")

        category_id = category.id
        tenant_id = category.tenant_id
        category.delete()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['CATEGORY_DELETED'],
            resource_type='category',
            resource_id=category_id,
            tenant_id=tenant_id
        )
        self.log(principal).info(f"Category deleted: {category_id}")
        return True
