"""Django settings for the Stockroom project."""

import os
from pathlib import Path
from urllib.parse import unquote, urlparse

from django.urls import reverse_lazy

BASE_DIR = Path(__file__).resolve().parent.parent


def env_flag(name, default="False"):
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


SECRET_KEY = os.environ.get(
    "SECRET_KEY", "dev-secret-key-change-in-production"
)

DEBUG = env_flag("DEBUG", "True")

ALLOWED_HOSTS = [
    h.strip()
    for h in os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
]
# Always allow localhost for internal health checks
for _h in ("localhost", "127.0.0.1"):
    if _h not in ALLOWED_HOSTS:
        ALLOWED_HOSTS.append(_h)

INSTALLED_APPS = [
    "daphne",
    "unfold",
    "unfold.contrib.filters",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_htmx",
    "django_gravatar",
    "channels",
    "accounts",
    "assets",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_htmx.middleware.HtmxMiddleware",
    "django_ratelimit.middleware.RatelimitMiddleware",
    "stockroom.middleware.AppErrorMiddleware",
]

ROOT_URLCONF = "stockroom.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
                "stockroom.context_processors.site_settings",
                "stockroom.context_processors.current_organization",
            ],
        },
    },
]

WSGI_APPLICATION = "stockroom.wsgi.application"
ASGI_APPLICATION = "stockroom.asgi.application"

AUTH_USER_MODEL = "accounts.CustomUser"

# Database: PostgreSQL from DATABASE_URL, SQLite otherwise
DATABASE_URL = os.environ.get("DATABASE_URL", "")
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}
if DATABASE_URL:
    _db = urlparse(DATABASE_URL)
    if _db.scheme in ("postgres", "postgresql"):
        DATABASES["default"] = {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": _db.path.lstrip("/"),
            "USER": unquote(_db.username or ""),
            "PASSWORD": unquote(_db.password or ""),
            "HOST": _db.hostname or "",
            "PORT": str(_db.port or 5432),
            "CONN_MAX_AGE": int(os.environ.get("DB_CONN_MAX_AGE", "60")),
        }

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": f"django.contrib.auth.password_validation.{name}"}
    for name in (
        "UserAttributeSimilarityValidator",
        "MinimumLengthValidator",
        "CommonPasswordValidator",
        "NumericPasswordValidator",
    )
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_URL = "media/"
MEDIA_ROOT = BASE_DIR / "media"

# S3 Storage Configuration (public bucket for location images)
USE_S3 = env_flag("USE_S3")

if USE_S3:
    STORAGES = {
        "default": {
            "BACKEND": "stockroom.storage.ProxiedS3Storage",
            "OPTIONS": {
                "bucket_name": os.environ.get(
                    "AWS_STORAGE_BUCKET_NAME", "public"
                ),
                "access_key": os.environ.get("AWS_ACCESS_KEY_ID"),
                "secret_key": os.environ.get("AWS_SECRET_ACCESS_KEY"),
                "endpoint_url": os.environ.get("AWS_S3_ENDPOINT_URL"),
                "region_name": os.environ.get("AWS_S3_REGION_NAME"),
                "default_acl": None,
                "querystring_auth": False,
                "file_overwrite": False,
                "location": "media",
                "custom_domain": os.environ.get("AWS_S3_CUSTOM_DOMAIN"),
            },
        },
        "staticfiles": {
            "BACKEND": "whitenoise.storage."
            "CompressedManifestStaticFilesStorage",
        },
    }
    MEDIA_URL = "/media/"
else:
    STORAGES = {
        "default": {
            "BACKEND": "django.core.files.storage.FileSystemStorage",
        },
        "staticfiles": {
            "BACKEND": "whitenoise.storage."
            "CompressedManifestStaticFilesStorage",
        },
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

RATELIMIT_VIEW = "stockroom.views.ratelimited_view"

# Gravatar avatars for note authors and custodians
GRAVATAR_DEFAULT_IMAGE = "mp"
GRAVATAR_DEFAULT_SIZE = 40
GRAVATAR_DEFAULT_SECURE = True
GRAVATAR_DEFAULT_RATING = "g"

LOGIN_URL = "accounts:login"
LOGIN_REDIRECT_URL = "assets:asset_list"
LOGOUT_REDIRECT_URL = "accounts:login"

# CSRF/session security for production
if not DEBUG:
    CSRF_COOKIE_SECURE = True
    SESSION_COOKIE_SECURE = True
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
    CSRF_TRUSTED_ORIGINS = [f"https://{h}" for h in ALLOWED_HOSTS]

SESSION_COOKIE_AGE = int(os.environ.get("SESSION_COOKIE_AGE", "1209600"))
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"

# Site configuration
SITE_NAME = os.environ.get("SITE_NAME", "Stockroom")
SITE_URL = os.environ.get("SITE_URL", "")

# Locations and images
LOCATION_IMAGE_MAX_WIDTH = int(
    os.environ.get("LOCATION_IMAGE_MAX_WIDTH", "1200")
)
LOCATION_THUMBNAIL_SIZE = int(os.environ.get("LOCATION_THUMBNAIL_SIZE", "108"))

# Seconds a bulk-action modal keeps its open/submitting state
BULK_MODAL_TIMEOUT = int(os.environ.get("BULK_MODAL_TIMEOUT", "300"))

# Cache configuration
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ.get("CACHE_URL", "redis://localhost:6379/1"),
    }
}

# Celery configuration
CELERY_BROKER_URL = os.environ.get(
    "CELERY_BROKER_URL", "redis://localhost:6379/0"
)
CELERY_RESULT_BACKEND = os.environ.get(
    "CELERY_RESULT_BACKEND", "redis://localhost:6379/0"
)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE

# Django Channels: Redis channel layer for user notifications
CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels_redis.core.RedisChannelLayer",
        "CONFIG": {
            "hosts": [
                f"redis://{os.environ.get('CHANNEL_LAYERS_HOST', 'redis')}:"
                f"{os.environ.get('CHANNEL_LAYERS_PORT', '6379')}/1"
            ],
            "prefix": "asgi:",
        },
    },
}

# django-unfold configuration
UNFOLD = {
    "SITE_TITLE": SITE_NAME,
    "SITE_HEADER": SITE_NAME,
    "SITE_SYMBOL": "inventory_2",
    "SIDEBAR": {
        "show_search": True,
        "show_all_applications": False,
        "navigation": [
            {
                "items": [
                    {
                        "title": "Dashboard",
                        "icon": "dashboard",
                        "link": reverse_lazy("admin:index"),
                    },
                ],
            },
            {
                "title": "Assets",
                "icon": "inventory_2",
                "collapsible": True,
                "items": [
                    {
                        "title": "Assets",
                        "icon": "package_2",
                        "link": reverse_lazy("admin:assets_asset_changelist"),
                    },
                    {
                        "title": "Notes",
                        "icon": "sticky_note_2",
                        "link": reverse_lazy("admin:assets_note_changelist"),
                    },
                    {
                        "title": "QR codes",
                        "icon": "qr_code_2",
                        "link": reverse_lazy("admin:assets_qr_changelist"),
                    },
                    {
                        "title": "Custom fields",
                        "icon": "tune",
                        "link": reverse_lazy(
                            "admin:assets_customfield_changelist"
                        ),
                    },
                ],
            },
            {
                "title": "Organization",
                "icon": "corporate_fare",
                "collapsible": True,
                "items": [
                    {
                        "title": "Locations",
                        "icon": "location_on",
                        "link": reverse_lazy(
                            "admin:assets_location_changelist"
                        ),
                    },
                    {
                        "title": "Categories",
                        "icon": "category",
                        "link": reverse_lazy(
                            "admin:assets_category_changelist"
                        ),
                    },
                    {
                        "title": "Tags",
                        "icon": "label",
                        "link": reverse_lazy("admin:assets_tag_changelist"),
                    },
                    {
                        "title": "Team members",
                        "icon": "badge",
                        "link": reverse_lazy(
                            "admin:assets_teammember_changelist"
                        ),
                    },
                ],
            },
            {
                "title": "Users & Auth",
                "icon": "people",
                "collapsible": True,
                "items": [
                    {
                        "title": "Organizations",
                        "icon": "apartment",
                        "link": reverse_lazy(
                            "admin:accounts_organization_changelist"
                        ),
                    },
                    {
                        "title": "Users",
                        "icon": "person",
                        "link": reverse_lazy(
                            "admin:accounts_customuser_changelist"
                        ),
                    },
                ],
            },
        ],
    },
}

# Logging: tracebacks for captured errors reach container logs even
# with DEBUG=False
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "labelled": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "labelled",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        },
        "stockroom": {
            "handlers": ["console"],
            "level": os.environ.get("LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "assets": {
            "handlers": ["console"],
            "level": os.environ.get("LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}

# Refuse to start a production deployment with development defaults
from django.core.exceptions import ImproperlyConfigured

if not DEBUG:
    _required = {
        "SECRET_KEY": SECRET_KEY != "dev-secret-key-change-in-production",
        "DATABASE_URL": bool(DATABASE_URL),
    }
    if USE_S3:
        _required.update(
            (name, bool(os.environ.get(name)))
            for name in (
                "AWS_ACCESS_KEY_ID",
                "AWS_SECRET_ACCESS_KEY",
                "AWS_STORAGE_BUCKET_NAME",
            )
        )
    _missing = [name for name, present in _required.items() if not present]
    if _missing:
        raise ImproperlyConfigured(
            "Missing required environment variable(s): "
            f"{', '.join(_missing)}."
        )
