"""
Tenant LMS - 极简配置
所有配置都有默认值，可通过 settings.TENANT_LMS 或环境变量覆盖
"""

import os

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .constants import DEFAULT_TENANT_SETTINGS, EXEMPT_ROLE, TENANT_HEADER


class TenantLMSSettings:
    """
    极简配置类 - 大部分配置都有智能默认值

    查找顺序: settings.TENANT_LMS -> TENANT_LMS_<NAME> 环境变量 -> DEFAULTS
    """

    DEFAULTS = {
        # 租户隔离
        'EXEMPT_ROLE': EXEMPT_ROLE,
        'TENANT_HEADER': TENANT_HEADER,
        # 非豁免主体解析不到租户时是否放开过滤（保持历史行为）
        'FAIL_OPEN_ON_UNRESOLVED_TENANT': True,

        # JWT配置
        'JWT_SECRET_KEY': None,  # 默认使用Django的SECRET_KEY
        'JWT_ALGORITHM': 'HS256',
        'JWT_ACCESS_TOKEN_LIFETIME': 60 * 15,  # 15分钟
        'JWT_REFRESH_TOKEN_LIFETIME': 60 * 60 * 24 * 7,  # 7天

        # 缓存配置
        'CACHE_TIMEOUT': 1800,  # 30分钟
        'CACHE_PREFIX': 'tenant_lms',

        # 功能开关
        'ENABLE_REGISTRATION': True,
        'ENABLE_AUDIT_LOG': True,

        # 租户设置默认值
        'DEFAULT_TENANT_SETTINGS': DEFAULT_TENANT_SETTINGS,

        # 安全配置
        'PASSWORD_MIN_LENGTH': 8,

        # API配置
        'API_VERSION': 'v1',
        'PAGE_SIZE': 15,
        'MAX_PAGE_SIZE': 100,
    }

    @property
    def user_settings(self):
        return getattr(settings, 'TENANT_LMS', {})

    def validate(self):
        """只验证必需的配置"""
        if not self.JWT_SECRET_KEY:
            raise ImproperlyConfigured(
                "JWT_SECRET_KEY is required. "
                "Configure TENANT_LMS['JWT_SECRET_KEY'] or set SECRET_KEY in settings.py"
            )

        if not self.EXEMPT_ROLE:
            raise ImproperlyConfigured("TENANT_LMS['EXEMPT_ROLE'] must not be empty")

    def __getattr__(self, name):
        """智能配置获取"""
        if name.startswith('_'):
            raise AttributeError(name)

        # 1. 先检查用户是否显式配置
        user_settings = self.user_settings
        if name in user_settings:
            return user_settings[name]

        # 2. 检查环境变量
        env_value = os.getenv(f'TENANT_LMS_{name}')
        if env_value is not None:
            return self._coerce(name, env_value)

        # 3. 默认值
        if name in self.DEFAULTS:
            if name == 'JWT_SECRET_KEY':
                return getattr(settings, 'SECRET_KEY', '')
            return self.DEFAULTS[name]

        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

    def _coerce(self, name, value):
        """环境变量类型转换，以默认值类型为准"""
        default = self.DEFAULTS.get(name)
        if isinstance(default, bool):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        if isinstance(default, int):
            try:
                return int(value)
            except ValueError:
                return default
        return value

    def get_cache_key(self, *parts):
        """生成缓存键"""
        return ':'.join([self.CACHE_PREFIX] + [str(p) for p in parts])


# 全局配置实例
lms_settings = TenantLMSSettings()


# 便捷函数
def get_lms_setting(name, default=None):
    """便捷函数：获取配置项"""
    try:
        return getattr(lms_settings, name)
    except AttributeError:
        return default


def is_feature_enabled(feature_name):
    """便捷函数：检查功能是否开启"""
    return bool(get_lms_setting(f'ENABLE_{feature_name.upper()}', False))
