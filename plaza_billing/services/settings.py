"""Plaza settings singleton."""

from __future__ import annotations

import logging
from decimal import Decimal

from plaza_billing.billing.status import parse_amount
from plaza_billing.exceptions import ValidationError
from plaza_billing.models import PlazaSettings
from plaza_billing.store.base import SETTINGS, SETTINGS_DOC_ID, DocumentStore
from plaza_billing.store.serialization import from_document, to_document

logger = logging.getLogger(__name__)


class SettingsService:
    """Read and write the ``settings/plaza`` document."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def load(self) -> PlazaSettings:
        """Stored settings, or the defaults when none were saved yet."""
        doc = self.store.get(SETTINGS, SETTINGS_DOC_ID)
        if doc is None:
            return PlazaSettings()
        return from_document(PlazaSettings, doc)

    def update(self, settings: PlazaSettings) -> PlazaSettings:
        """Merge ``settings`` into the stored document."""
        if not (settings.plaza_name or "").strip():
            raise ValidationError("Plaza name is required")
        fee = parse_amount(settings.late_fee_percentage, field="Late fee percentage", allow_zero=True)
        if fee > Decimal("100"):
            raise ValidationError(f"Late fee percentage must be at most 100, got {fee}")
        settings.late_fee_percentage = fee

        self.store.set(SETTINGS, SETTINGS_DOC_ID, to_document(settings), merge=True)
        logger.info("Saved settings for %s", settings.plaza_name)
        return settings
