"""
Cache for AI-generated mentor notes keyed by (parent, item index).

The first stored note for a key wins. A freshly generated note is returned to
the caller even when storing it fails.
"""
import logging
from typing import Any, Callable, Dict, Optional, Tuple, Type

from django.db import DatabaseError, IntegrityError, models, transaction

logger = logging.getLogger(__name__)


def get_or_create_note(
    model: Type[models.Model],
    lookup: Dict[str, Any],
    text_field: str,
    generate: Callable[[], str],
    extra: Optional[Dict[str, Any]] = None,
) -> Tuple[str, bool]:
    """Return ``(text, cached)``; ``generate`` runs only on a cache miss."""
    existing = model.objects.filter(**lookup).values_list(text_field, flat=True).first()
    if existing is not None:
        return existing, True

    text = generate()

    try:
        with transaction.atomic():
            model.objects.create(**lookup, **(extra or {}), **{text_field: text})
    except IntegrityError:
        # a concurrent request stored its note first; the unique constraint kept one row
        logger.info("note already stored for %s %s", model.__name__, lookup)
    except DatabaseError:
        logger.exception("failed to store note for %s %s", model.__name__, lookup)
    return text, False
