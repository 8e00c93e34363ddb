"""Payment application against billing records."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from plaza_billing.billing.status import derive_status, outstanding_balance, parse_amount
from plaza_billing.config import BillingConfig
from plaza_billing.exceptions import RecordNotFoundError
from plaza_billing.models import BillingKind, BillingRecord, PaymentTransaction
from plaza_billing.store.base import Document, DocumentStore
from plaza_billing.store.serialization import from_document, to_document

logger = logging.getLogger(__name__)


class PaymentLedger:
    """Record payments on rent or maintenance records.

    Each payment is applied inside the store's atomic read-modify-write, so
    concurrent payments against one record all count.
    """

    def __init__(
        self,
        store: DocumentStore,
        kind: BillingKind,
        config: BillingConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.kind = kind
        self.config = config or BillingConfig()
        self._clock = clock

    def new_transaction(
        self,
        amount: Decimal,
        note: str | None = None,
        collected_by: str | None = None,
    ) -> PaymentTransaction:
        """Build the transaction entry for a payment captured now."""
        return PaymentTransaction(
            id=uuid.uuid4().hex[:12],
            date=self._clock().strftime(self.config.transaction_date_format),
            amount=amount,
            collected_by=collected_by or self.config.unknown_collector,
            note=note or None,
        )

    def apply_payment(
        self,
        record_id: str,
        amount: Any,
        note: str | None = None,
        collected_by: str | None = None,
    ) -> BillingRecord:
        """Apply a payment to a billing record.

        Parameters
        ----------
        record_id : str
            Billing record identifier.
        amount : Any
            Payment amount; must be greater than zero. Paying more than the
            outstanding balance is allowed.
        note : str | None
            Optional free-text note.
        collected_by : str | None
            Display name of the operator recording the payment.

        Returns
        -------
        BillingRecord
            The record after the payment.

        Raises
        ------
        ValidationError
            If ``amount`` is not a positive number.
        RecordNotFoundError
            If no record has ``record_id``.
        """
        payment = parse_amount(amount, field="Payment amount")
        transaction = self.new_transaction(payment, note, collected_by)

        def apply(doc: Document) -> Document:
            record = from_document(BillingRecord, doc)
            collected = record.collected + payment
            return {
                "collected": str(collected),
                "status": derive_status(record.amount, collected).value,
                "transactions": [to_document(transaction), *(doc.get("transactions") or [])],
            }

        try:
            updated = self.store.transact(self.kind.collection, record_id, apply)
        except RecordNotFoundError:
            logger.warning("Payment of %s rejected: %s record %s not found", payment, self.kind.value, record_id)
            raise

        record = from_document(BillingRecord, updated)
        logger.info(
            "Recorded %s payment of %s on shop %s (%s): collected %s of %s, %s",
            self.kind.value,
            payment,
            record.shop_number,
            record.month,
            record.collected,
            record.amount,
            record.status.value,
        )
        return record

    @staticmethod
    def default_amount(record: BillingRecord) -> Decimal:
        """Amount a payment form should default to: the outstanding balance."""
        return outstanding_balance(record.amount, record.collected)
