"""
Base Django settings for EntitlementService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from pathlib import Path

from .logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-q0^c!3n8vz@t1l6k$x7h2m(9w+e5r_j4p#a*u%s&d=yb)o"
)

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third party
    "rest_framework",
    "drf_spectacular",
    # Local apps
    "EntitlementService.apps.EntitlementServiceConfig",
    "core",
    "licenses",
    "billing",
    "api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Custom middleware
    "core.middleware.observability.ObservabilityMiddleware",
    "core.middleware.metrics.MetricsMiddleware",
]

ROOT_URLCONF = "EntitlementService.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "EntitlementService.wsgi.application"
ASGI_APPLICATION = "EntitlementService.asgi.application"

# Database
# https://docs.djangoproject.com/en/4.2/ref/settings/#databases
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "entitlement_service"),
        "USER": os.environ.get("DB_USER", "postgres"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "postgres"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST Framework
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "EXCEPTION_HANDLER": "api.exceptions.custom_exception_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "UNAUTHENTICATED_USER": None,
}

# drf-spectacular settings
SPECTACULAR_SETTINGS = {
    "TITLE": "Entitlement Service API",
    "DESCRIPTION": (
        "Reconciles user licenses with payment provider events. "
        "Provides the Stripe webhook endpoint and user-facing license actions."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "COMPONENT_SPLIT_REQUEST": True,
    "SCHEMA_PATH_PREFIX": "/api/v1",
    "TAGS": [
        {"name": "Webhooks", "description": "Payment provider event intake"},
        {"name": "License API", "description": "User-facing license actions"},
        {"name": "Health", "description": "Health check endpoints"},
    ],
}

# Redis Cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ.get("REDIS_URL", "redis://127.0.0.1:6379/1"),
        "OPTIONS": {
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
        },
    }
}

# Payment provider
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")
STRIPE_API_VERSION = os.environ.get("STRIPE_API_VERSION", "2025-07-30.basil")
PAYMENT_WEBHOOK_TOLERANCE_SECONDS = int(
    os.environ.get("PAYMENT_WEBHOOK_TOLERANCE_SECONDS", "300")
)

# Hosted checkout return pages
CHECKOUT_SUCCESS_URL = os.environ.get(
    "CHECKOUT_SUCCESS_URL", "https://ebb.cool/license/callback?session_id={CHECKOUT_SESSION_ID}"
)
CHECKOUT_CANCEL_URL = os.environ.get("CHECKOUT_CANCEL_URL", "https://ebb.cool/license/callback")

# Product catalog: provider product id -> license terms
PAYMENT_PRODUCTS = {
    "prod_SuYkFqTzEpW78s": {
        "name": "Ebb Pro Monthly Subscription",
        "license_type": "subscription",
        "billing_type": "recurring",
    },
    "prod_SuYlSMSfhzbVi6": {
        "name": "Ebb Pro Annual Subscription",
        "license_type": "subscription",
        "billing_type": "recurring",
    },
    "prod_SuYmPerpetual01": {
        "name": "Ebb Pro Perpetual License",
        "license_type": "perpetual",
        "billing_type": "one_time",
    },
}

# License terms
FREE_TRIAL_DAYS = int(os.environ.get("FREE_TRIAL_DAYS", "14"))
PERPETUAL_LICENSE_DAYS = int(os.environ.get("PERPETUAL_LICENSE_DAYS", "365"))
LICENSE_CACHE_TTL_SECONDS = int(os.environ.get("LICENSE_CACHE_TTL_SECONDS", "300"))

# Observability
OTEL_ENABLED = os.environ.get("OTEL_ENABLED", "false").lower() == "true"
LOGGING = get_logging_config(ENVIRONMENT)
