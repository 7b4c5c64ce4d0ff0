"""
Slug normalization and allocation.

The unique index on the slug column is authoritative: find_unique_slug() only
proposes a candidate, and save_with_unique_slug() retries when a concurrent
writer claimed the same one between the check and the insert.
"""

import logging
import re
import time

from django.conf import settings
from django.db import IntegrityError, transaction

from utils.errors import SlugExhausted

logger = logging.getLogger(__name__)

MAX_BASE_LENGTH = 200
SAVE_RETRIES = 3


def normalize_slug(value):
    """Lowercase, trim, drop anything outside [a-z0-9 -], collapse whitespace and hyphens."""
    slug = str(value or "").lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug[:MAX_BASE_LENGTH]


def fallback_slug(entity):
    return f"{entity}-{int(time.time() * 1000)}"


def find_unique_slug(model, base, exclude_pk=None):
    """
    Return base, or base-1, base-2, ... whichever is not taken yet.

    Raises SlugExhausted after settings.SLUG_MAX_ATTEMPTS candidates.
    """
    max_attempts = settings.SLUG_MAX_ATTEMPTS
    queryset = model._default_manager.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)

    candidate = base
    for n in range(1, max_attempts + 1):
        if not queryset.filter(slug=candidate).exists():
            return candidate
        candidate = f"{base}-{n}"

    logger.warning(f"Slug search for '{base}' on {model.__name__} gave up after {max_attempts} attempts")
    raise SlugExhausted(f"Could not find a free slug for '{base}'")


def _slug_taken_by_other(instance):
    return type(instance)._default_manager.filter(slug=instance.slug).exclude(pk=instance.pk).exists()


def save_with_unique_slug(instance, base, entity):
    """
    Normalize base, assign a free slug to instance and save it.

    An empty normalized base falls back to "<entity>-<milliseconds>". Integrity
    errors not caused by a slug clash propagate unchanged.
    """
    base = normalize_slug(base) or fallback_slug(entity)
    exclude_pk = None if instance._state.adding else instance.pk

    for attempt in range(1, SAVE_RETRIES + 1):
        instance.slug = find_unique_slug(type(instance), base, exclude_pk=exclude_pk)
        try:
            with transaction.atomic():
                instance.save()
            return instance
        except IntegrityError:
            if not _slug_taken_by_other(instance):
                raise
            logger.info(f"Slug '{instance.slug}' was claimed concurrently (attempt {attempt}), retrying")

    raise SlugExhausted(f"Could not claim a free slug for '{base}'")
