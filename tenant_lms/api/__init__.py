"""
Tenant LMS REST API (Django REST Framework)
"""
