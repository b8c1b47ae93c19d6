import logging

from django.apps import AppConfig


logger = logging.getLogger(__name__)


class TenantLMSConfig(AppConfig):
    """Tenant LMS 应用配置"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tenant_lms'
    verbose_name = 'Tenant LMS'

    def ready(self):
        """应用初始化：校验配置并注册默认资源策略"""
        from django.core.exceptions import ImproperlyConfigured

        from .conf import lms_settings
        from .tenancy.policies import register_default_policies

        register_default_policies()

        try:
            lms_settings.validate()
        except ImproperlyConfigured as e:
            logger.warning(f"Tenant LMS configuration issue: {str(e)}")
