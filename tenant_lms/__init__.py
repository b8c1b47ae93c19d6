"""
Tenant LMS

多租户学习管理后端：认证、课程内容、报名、排课与租户设置。

核心设计原则：
- 每次数据访问都经过租户作用域过滤: tenant_id == 当前租户
- 超级管理员 (super_admin) 跨租户，不受过滤
- 资源策略在每次变更前再次校验租户归属
- 主体 (principal) 与请求上下文显式传参，不读取全局状态
"""

__version__ = "1.0.0"
__author__ = "Tenant LMS Team"
__description__ = "多租户学习管理后端"
