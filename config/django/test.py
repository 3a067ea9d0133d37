from .base import *  # noqa

DEBUG = False

SECRET_KEY = "test-secret-key"

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "profile-editor-tests",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"

PROFILE_SIGNER_URL = "http://signer.test/events"
