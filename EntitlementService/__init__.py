"""
Entitlement Service Django project.
"""
