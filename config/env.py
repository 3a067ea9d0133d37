import environ
from django.core.exceptions import ImproperlyConfigured
import logging

log = logging.getLogger(__name__)

env = environ.Env()

BASE_DIR = environ.Path(__file__) - 2


def env_get(name: str, default=None):
    """
    Unified accessor:
      1) .env / environment (via django-environ)
      2) default
    Empty values count as unset.
    """
    try:
        val = env(name, default=None)  # django-environ reads from os.environ / .env
        if val not in (None, ""):
            return val
    except ImproperlyConfigured as e:
        log.warning("env_get: could not read %s: %s (using default)", name, e)
    return default
