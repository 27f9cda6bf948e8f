import logging
from pathlib import Path

from django.conf import settings

from apps.core.caching import CacheKeys, cache_service

logger = logging.getLogger(__name__)


def _read_template(name):
    path = Path(settings.EMAIL_TEMPLATES_DIR) / name
    logger.debug(f"Loading email template from {path}")
    return path.read_text(encoding='utf-8')


def load_template(name, cache=None):
    """Template source, read from disk on a cache miss and kept for 10 minutes"""
    cache = cache or cache_service
    return cache.get_or_set(CacheKeys.email_template(name), lambda: _read_template(name), 'EmailTemplate')


def render_template(source, placeholders):
    """Replace every {{Name}} marker with the matching value"""
    for name, value in placeholders.items():
        source = source.replace('{{' + name + '}}', str(value))
    return source
