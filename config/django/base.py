import os

import structlog

from config.env import BASE_DIR, env, env_get

env.read_env(os.path.join(str(BASE_DIR), ".env"))

SECRET_KEY = env_get("DJANGO_SECRET_KEY", default="django-insecure-profile-editor-dev")

DEBUG = env.bool("DEBUG", default=True)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["*"])

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "corsheaders",
    "django_structlog",
    "ninja_extra",
    "src.profiles.apps.ProfilesConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django_structlog.middlewares.RequestMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {"context_processors": ["django.template.context_processors.request"]},
    },
]

DATABASES = {
    "default": env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR('db.sqlite3')}"),
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# The signed-in identity lives in the session; no DB access from async views
SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"
SESSION_COOKIE_HTTPONLY = True

CACHES = {
    "default": env.cache("CACHE_URL", default="locmemcache://profile-editor"),
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR("staticfiles")

# Logging
timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
pre_chain = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    timestamper,
]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "logfmt_formatter": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.LogfmtRenderer(),
            "foreign_pre_chain": pre_chain,
        },
        "console_formatter": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.dev.ConsoleRenderer(colors=False),
            "foreign_pre_chain": pre_chain,
        },
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": env.str("LOG_FORMATTER", default="console_formatter"),
        },
    },
    "root": {"level": env.str("LOG_LEVEL", default="INFO"), "handlers": ["default"]},
    "loggers": {
        "django_structlog": {"level": "INFO", "handlers": ["default"], "propagate": False},
        "src": {"level": env.str("LOG_LEVEL", default="INFO"), "handlers": ["default"], "propagate": False},
    },
}

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        *pre_chain,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

from config.settings.celery import *  # noqa
from config.settings.cors import *  # noqa
from config.settings.profiles import *  # noqa
