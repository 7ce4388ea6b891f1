"""
Gateway payment sources and the payments charged from them.

A PaymentSource is the gateway-side checkout session (GCash / Maya) the
client is redirected to. Once the client authorizes it the gateway marks
it chargeable and a Payment is created by charging it.

Usage:
    from payments.models import PaymentSource

    source = PaymentSource.objects.create(
        source_id="src_abc",
        booking=booking,
        user_id=client_id,
        amount=Decimal("525.00"),
        method=PaymentMethod.GCASH,
        checkout_url="https://pm.link/...",
    )

    source.mark_paid(payment_id="pay_123")
    source.save()
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin

from payments.state_machines import PaymentMethod, PaymentSourceStatus


class PaymentSource(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    A gateway checkout session for one booking payment.

    Only one pending source may exist per (booking, amount): repeated
    checkout attempts for the same amount reuse it instead of opening a
    second session.

    State Flow:
        PENDING -> CHARGEABLE -> PAID
        PENDING -> PAID (reconciled after the gateway already charged it)
        PENDING/CHARGEABLE -> FAILED
    """

    source_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Gateway source ID (src_xxx)",
    )

    booking = models.ForeignKey(
        "payments.Booking",
        on_delete=models.PROTECT,
        related_name="payment_sources",
    )

    user_id = models.CharField(
        max_length=128,
        help_text="User who opened the checkout session",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)

    method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
    )

    status = FSMField(
        default=PaymentSourceStatus.PENDING,
        choices=PaymentSourceStatus.choices,
        db_index=True,
    )

    checkout_url = models.URLField(max_length=500, blank=True, default="")

    payment_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Gateway payment ID once the source was charged",
    )

    paid_at = models.DateTimeField(null=True, blank=True)
    refunded = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["booking", "status"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["booking", "amount"],
                condition=Q(status=PaymentSourceStatus.PENDING),
                name="unique_pending_source_per_booking_amount",
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="payment_source_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"PaymentSource({self.source_id}, {self.status})"

    @transition(
        field=status,
        source=PaymentSourceStatus.PENDING,
        target=PaymentSourceStatus.CHARGEABLE,
    )
    def mark_chargeable(self) -> None:
        """Transition: PENDING -> CHARGEABLE"""

    @transition(
        field=status,
        source=[PaymentSourceStatus.PENDING, PaymentSourceStatus.CHARGEABLE],
        target=PaymentSourceStatus.PAID,
    )
    def mark_paid(self, payment_id: str = "") -> None:
        """Transition: PENDING/CHARGEABLE -> PAID"""
        if payment_id:
            self.payment_id = payment_id
        self.paid_at = timezone.now()

    @transition(
        field=status,
        source=[PaymentSourceStatus.PENDING, PaymentSourceStatus.CHARGEABLE],
        target=PaymentSourceStatus.FAILED,
    )
    def mark_failed(self, reason: str = "") -> None:
        """Transition: PENDING/CHARGEABLE -> FAILED"""
        if reason:
            self.metadata["failure_reason"] = reason


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A gateway payment created by charging a chargeable source.

    Fields:
        payment_id: Gateway payment ID (pay_xxx)
        source: The source that was charged
        amount: Charged amount
        status: Gateway payment status (paid, failed, pending)
        refunded: Whether the payment has been refunded
    """

    payment_id = models.CharField(max_length=64, unique=True)

    source = models.ForeignKey(
        PaymentSource,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, db_index=True)
    refunded = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Payment({self.payment_id}, {self.status})"
