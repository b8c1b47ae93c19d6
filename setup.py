"""
Tenant LMS
多租户学习管理后端
"""

from setuptools import setup, find_packages
import os

# 读取 README 文件
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Tenant LMS - 多租户学习管理后端"

setup(
    name="tenant-lms",
    version="1.0.0",
    author="Tenant LMS Team",
    description="多租户学习管理后端 - 租户作用域过滤与资源策略",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["docs*", "examples*"]),
    include_package_data=True,
    package_data={
        "tenant_lms": [
            "management/**/*",
            "migrations/**/*",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: Django",
        "Framework :: Django :: 4.2",
        "Framework :: Django :: 5.0",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Education",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    ],
    keywords="django multi-tenant lms tenant-isolation authorization",
    python_requires=">=3.8",
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14.0",
        "django-cors-headers>=4.0.0",
        "PyJWT>=2.8.0",
    ],
    extras_require={
        "postgres": [
            "psycopg2-binary>=2.9.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "pytest-django>=4.5.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "django.apps": [
            "tenant_lms=tenant_lms.apps.TenantLMSConfig",
        ],
    },
    zip_safe=False,
    platforms=["any"],
    license="MIT",
)
