"""
ASGI config for the profile editor.

It exposes the ASGI callable as a module-level variable named ``application``.
DJANGO_ENV picks the settings module (production | test | anything else -> base).
"""

import os

from django.core.asgi import get_asgi_application

SETTINGS_BY_ENV = {
    "production": "config.django.production",
    "test": "config.django.test",
}

ENV = os.environ.get("DJANGO_ENV", "development")
os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE", SETTINGS_BY_ENV.get(ENV, "config.django.base")
)

application = get_asgi_application()
