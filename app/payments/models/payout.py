"""
PayoutRequest model for provider withdrawals.

A provider requests a withdrawal of part of their available balance; an
administrator approves it, transfers the money outside the platform and
marks it completed (or failed, which gives the money back).

Usage:
    from payments.models import PayoutRequest
    from payments.state_machines import PayoutState

    payout = PayoutRequest.objects.create(
        provider_id="prov_1",
        amount=Decimal("500.00"),
    )

    payout.approve(admin_id="admin_1")  # pending -> approved
    payout.save()

    payout.complete(reference_number="GC-123")  # approved -> completed
    payout.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PayoutState


class PayoutRequest(UUIDPrimaryKeyMixin, BaseModel):
    """
    A provider's request to withdraw funds.

    State Flow:
        PENDING -> APPROVED -> COMPLETED
        PENDING/APPROVED -> FAILED

    Fields:
        provider_id: Provider requesting the payout
        amount: Amount requested
        status: Current FSM state
        account_method / account_number / account_name: Snapshot of the
            provider's payout account at request time
        approved_by: Administrator who approved the request
        reference_number: External transfer reference on completion
        failure_reason: Why the payout failed
    """

    provider_id = models.CharField(max_length=128, db_index=True)

    amount = models.DecimalField(max_digits=12, decimal_places=2)

    status = FSMField(
        default=PayoutState.PENDING,
        choices=PayoutState.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the payout (managed by FSM)",
    )

    # ==========================================================================
    # Destination Account Snapshot
    # ==========================================================================

    account_method = models.CharField(max_length=20, blank=True, default="")
    account_number = models.CharField(max_length=64, blank=True, default="")
    account_name = models.CharField(max_length=200, blank=True, default="")

    # ==========================================================================
    # Processing
    # ==========================================================================

    approved_by = models.CharField(max_length=128, blank=True, default="")
    reference_number = models.CharField(max_length=128, blank=True, default="")
    failure_reason = models.TextField(blank=True, default="")

    requested_at = models.DateTimeField(default=timezone.now, db_index=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-requested_at"]
        verbose_name = "Payout Request"
        verbose_name_plural = "Payout Requests"
        indexes = [
            models.Index(fields=["provider_id", "requested_at"]),
            models.Index(fields=["status", "requested_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payout_request_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"PayoutRequest({self.id}, {self.status}, {self.amount:.2f})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PayoutState.PENDING,
        target=PayoutState.APPROVED,
    )
    def approve(self, admin_id: str = "") -> None:
        """
        Approve the payout for transfer.

        Transition: PENDING -> APPROVED
        """
        self.approved_by = admin_id or ""
        self.approved_at = timezone.now()

    @transition(
        field=status,
        source=PayoutState.APPROVED,
        target=PayoutState.COMPLETED,
    )
    def complete(self, reference_number: str = "") -> None:
        """
        Mark the transfer as done.

        Transition: APPROVED -> COMPLETED
        """
        self.reference_number = reference_number or ""
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=[PayoutState.PENDING, PayoutState.APPROVED],
        target=PayoutState.FAILED,
    )
    def fail(self, reason: str = "") -> None:
        """
        Mark the payout as failed.

        Transition: PENDING/APPROVED -> FAILED

        The caller is responsible for restoring the provider's balance.
        """
        self.failure_reason = reason or ""
        self.failed_at = timezone.now()
