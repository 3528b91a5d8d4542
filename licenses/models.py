"""
Model registry for the licenses app.

Models live in licenses.infrastructure.models; Django discovers them here.
"""
from licenses.infrastructure.models import License, UserLicenseLock  # noqa: F401
