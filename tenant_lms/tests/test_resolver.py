"""
测试租户解析器
"""

from django.test import RequestFactory, SimpleTestCase, override_settings

from .base import make_principal
from ..constants import SCOPE_DENIED, SCOPE_EXEMPT, SCOPE_SYSTEM, SCOPE_TENANT, SCOPE_UNRESOLVED
from ..tenancy import RequestContext, ScopeContext, is_exempt, normalize_tenant_id, resolve_scope, resolve_tenant_id


class ResolveTenantIdTest(SimpleTestCase):
    """测试 resolve_tenant_id"""

    def test_principal_tenant_wins(self):
        """测试主体绑定的租户优先于请求头"""
        principal = make_principal(role='admin', tenant_id='A')
        context = RequestContext(tenant_hint='B')

        self.assertEqual(resolve_tenant_id(principal, context), 'A')

    def test_header_used_when_principal_has_no_tenant(self):
        """测试主体无租户时使用请求头提示"""
        principal = make_principal(role='staff', tenant_id=None)
        context = RequestContext(tenant_hint='B')

        self.assertEqual(resolve_tenant_id(principal, context), 'B')

    def test_exempt_role_ignores_header(self):
        """测试 super_admin 不受请求头影响"""
        principal = make_principal(role='super_admin', tenant_id=None)
        context = RequestContext(tenant_hint='B')

        self.assertIsNone(resolve_tenant_id(principal, context))
        self.assertTrue(is_exempt(principal))

    def test_exempt_role_with_tenant_still_unrestricted(self):
        """测试绑定了租户的 super_admin 仍不受限制"""
        principal = make_principal(role='super_admin', tenant_id='A')

        self.assertIsNone(resolve_tenant_id(principal, RequestContext()))

    def test_nothing_to_resolve(self):
        """测试没有任何租户信息时返回 None"""
        self.assertIsNone(resolve_tenant_id(make_principal(role='student'), None))
        self.assertIsNone(resolve_tenant_id(None, None))

    def test_resolution_is_idempotent(self):
        """测试同样的输入得到同样的结果"""
        principal = make_principal(role='student', tenant_id='A')
        context = RequestContext(tenant_hint='B')

        results = {resolve_tenant_id(principal, context) for _ in range(5)}
        self.assertEqual(results, {'A'})

    def test_normalize_tenant_id(self):
        """测试租户ID规范化"""
        self.assertIsNone(normalize_tenant_id(None))
        self.assertIsNone(normalize_tenant_id('  '))
        self.assertEqual(normalize_tenant_id(' A '), 'A')
        self.assertEqual(normalize_tenant_id(42), '42')

    def test_blank_header_is_ignored(self):
        """测试空请求头视为没有提示"""
        context = RequestContext(tenant_hint='   ')

        self.assertIsNone(context.tenant_hint)
        self.assertIsNone(resolve_tenant_id(make_principal(role='student'), context))


class RequestContextTest(SimpleTestCase):
    """测试从请求构造上下文"""

    def setUp(self):
        self.factory = RequestFactory()

    def test_from_request_reads_header(self):
        """测试读取 X-Tenant-ID 请求头"""
        request = self.factory.get('/', HTTP_X_TENANT_ID='tenant-b')

        context = RequestContext.from_request(request)

        self.assertEqual(context.tenant_hint, 'tenant-b')
        self.assertFalse(context.system)

    def test_from_request_without_header(self):
        """测试没有请求头"""
        request = self.factory.get('/')

        self.assertIsNone(RequestContext.from_request(request).tenant_hint)

    def test_from_request_reuses_middleware_context(self):
        """测试复用中间件已写入的上下文"""
        request = self.factory.get('/', HTTP_X_TENANT_ID='tenant-b')
        request.tenant_context = RequestContext(tenant_hint='tenant-c')

        self.assertEqual(RequestContext.from_request(request).tenant_hint, 'tenant-c')

    @override_settings(TENANT_LMS={'TENANT_HEADER': 'X-School'})
    def test_custom_header_name(self):
        """测试自定义租户请求头"""
        request = self.factory.get('/', HTTP_X_SCHOOL='school-1', HTTP_X_TENANT_ID='tenant-b')

        self.assertEqual(RequestContext.from_request(request).tenant_hint, 'school-1')

    def test_system_context(self):
        """测试系统上下文"""
        context = RequestContext.system_context()

        self.assertTrue(context.system)
        self.assertIsNone(context.tenant_hint)


class ResolveScopeTest(SimpleTestCase):
    """测试作用域解析"""

    def test_tenant_scope(self):
        """测试具体租户作用域"""
        scope = resolve_scope(make_principal(tenant_id='A'))

        self.assertEqual(scope, ScopeContext.for_tenant('A'))
        self.assertEqual(scope.reason, SCOPE_TENANT)
        self.assertFalse(scope.unrestricted)

    def test_exempt_scope(self):
        """测试豁免作用域"""
        scope = resolve_scope(make_principal(role='super_admin'))

        self.assertEqual(scope.reason, SCOPE_EXEMPT)
        self.assertTrue(scope.unrestricted)

    def test_unresolved_scope_fails_open_with_warning(self):
        """测试解析不到租户时默认不过滤并记录警告"""
        principal = make_principal(role='staff', principal_id='lost-user')

        with self.assertLogs('tenant_lms.tenancy.resolver', level='WARNING') as logs:
            scope = resolve_scope(principal, RequestContext())

        self.assertEqual(scope.reason, SCOPE_UNRESOLVED)
        self.assertTrue(scope.unrestricted)
        self.assertFalse(scope.deny_all)
        self.assertIn('lost-user', logs.output[0])

    def test_system_context_scope(self):
        """测试显式系统上下文不记录警告"""
        scope = resolve_scope(None, RequestContext.system_context())

        self.assertEqual(scope.reason, SCOPE_SYSTEM)
        self.assertTrue(scope.unrestricted)

    def test_system_context_with_hint(self):
        """测试带租户提示的系统上下文仍按租户过滤"""
        scope = resolve_scope(None, RequestContext.system_context('A'))

        self.assertEqual(scope, ScopeContext.for_tenant('A'))

    @override_settings(TENANT_LMS={'FAIL_OPEN_ON_UNRESOLVED_TENANT': False})
    def test_strict_mode_denies(self):
        """测试严格模式下解析不到租户时拒绝全部"""
        scope = resolve_scope(make_principal(role='staff'), RequestContext())

        self.assertEqual(scope.reason, SCOPE_DENIED)
        self.assertTrue(scope.deny_all)
        self.assertFalse(scope.unrestricted)

    @override_settings(TENANT_LMS={'FAIL_OPEN_ON_UNRESOLVED_TENANT': False})
    def test_strict_mode_keeps_exempt(self):
        """测试严格模式不影响 super_admin"""
        scope = resolve_scope(make_principal(role='super_admin'), RequestContext())

        self.assertEqual(scope.reason, SCOPE_EXEMPT)
