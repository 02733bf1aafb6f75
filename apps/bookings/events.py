"""
Reservation Events

Published through the message bus after the transaction that changed the
reservation commits. Handlers live in ``handlers.py``.
"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass
class ReservationEvent(DomainEvent):
    reservation_id: int = 0
    user_id: int = 0
    kind: str = ""
    resource_id: int = 0


@dataclass
class ReservationCreated(ReservationEvent):
    """
    Event: A reservation entered the ledger as pending

    Triggers:
    - Notify the user and every admin
    - Push booking:new to the admin room
    - Confirmation email
    - Refresh the campsite availability band
    """
    source: str = "web"


@dataclass
class ReservationUpdated(ReservationEvent):
    """Event: The owner changed dates or quantity of a pending reservation."""


@dataclass
class ReservationApproved(ReservationEvent):
    """
    Event: An admin approved the reservation (PENDING -> APPROVED)
    """
    decided_by_id: int | None = None


@dataclass
class ReservationRejected(ReservationEvent):
    """
    Event: An admin rejected the reservation (PENDING -> REJECTED)

    Capacity is released.
    """
    decided_by_id: int | None = None
    reason: str = ""


@dataclass
class ReservationCancelled(ReservationEvent):
    """
    Event: The owner cancelled (PENDING|APPROVED -> CANCELLED)

    Capacity is released; refund_amount is non-zero when money goes back.
    """
    refund_amount: str = "0.00"


@dataclass
class ReservationCompleted(ReservationEvent):
    """Event: The stay or rental is over (APPROVED -> COMPLETED)."""


@dataclass
class ReservationPaid(ReservationEvent):
    """Event: Simulated payment succeeded (payment PENDING -> PAID)."""
    amount: str = "0.00"
    source: str = "web"
