import uuid

from django.db import models
from django.utils import timezone

from accounts.models import Customer
from grounds.claims import ClaimMixin
from grounds.dates import DateScope
from grounds.models import Ground, SlotTime


class DatedClaim(ClaimMixin, models.Model):
    """A claim on one ground for one calendar date.

    The claim holds its slots while its status is in ``LIVE_STATUSES``.
    COMPLETED and CANCELLED are terminal.
    """
    BOOKED = 'BOOKED'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    STATUS = ((BOOKED, 'Booked'), (COMPLETED, 'Completed'), (CANCELLED, 'Cancelled'))

    LIVE_STATUSES = (BOOKED, COMPLETED)

    date = models.DateField()
    status = models.CharField(max_length=10, choices=STATUS, default=BOOKED)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True

    @property
    def is_live(self):
        return self.status in self.LIVE_STATUSES

    @property
    def is_terminal(self):
        return self.status in (self.COMPLETED, self.CANCELLED)

    def ground_ids(self):
        return {self.ground_id}

    def slot_ids(self):
        return {s.pk for s in self.slots.all()}

    def date_scope(self):
        return DateScope.on(self.date)

    def cancel(self):
        self.status = self.CANCELLED
        self.cancelled_at = timezone.now()
        self.save(update_fields=['status', 'cancelled_at'])

    def complete(self):
        self.status = self.COMPLETED
        self.completed_at = timezone.now()
        self.save(update_fields=['status', 'completed_at'])


class SlotBooking(DatedClaim):
    claim_kind = 'booking'

    ONLINE = 'ONLINE'
    MANUAL = 'MANUAL'
    SOURCE = ((ONLINE, 'Online'), (MANUAL, 'Manual'))

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    ground = models.ForeignKey(Ground, on_delete=models.CASCADE, related_name='bookings')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='bookings')
    slots = models.ManyToManyField(SlotTime, related_name='bookings')

    total_amount = models.PositiveIntegerField(default=0)
    booking_source = models.CharField(max_length=10, choices=SOURCE, default=ONLINE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-created_at']

    def __str__(self):
        return f"{self.customer} - {self.ground.name} on {self.date}"


class Reservation(models.Model):
    """Header of a multi-date reservation; the dates live in ReservationSlot."""
    claim_kind = 'reservation'

    ground = models.ForeignKey(Ground, on_delete=models.CASCADE, related_name='reservations')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='reservations')

    total_amount = models.PositiveIntegerField(default=0)
    discount = models.PositiveIntegerField(default=0)
    payment_mode = models.CharField(max_length=30, blank=True)
    payment_details = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Reservation #{self.pk} - {self.customer}"


class ReservationSlot(DatedClaim):
    claim_kind = 'reservation'

    # a completed reservation date no longer holds capacity
    LIVE_STATUSES = (DatedClaim.BOOKED,)

    reservation = models.ForeignKey(Reservation, on_delete=models.CASCADE, related_name='slot_dates')
    ground = models.ForeignKey(Ground, on_delete=models.CASCADE, related_name='reservation_slots')
    slots = models.ManyToManyField(SlotTime, related_name='reservation_slots')

    class Meta:
        ordering = ['date']

    def __str__(self):
        return f"Reservation #{self.reservation_id} on {self.date}"


class ActivityLog(models.Model):
    CREATED = 'CREATED'
    UPDATED = 'UPDATED'
    CANCELLED = 'CANCELLED'
    COMPLETED = 'COMPLETED'
    DEACTIVATED = 'DEACTIVATED'
    REACTIVATED = 'REACTIVATED'
    DELETED = 'DELETED'
    ACTIONS = (
        (CREATED, 'Created'),
        (UPDATED, 'Updated'),
        (CANCELLED, 'Cancelled'),
        (COMPLETED, 'Completed'),
        (DEACTIVATED, 'Deactivated'),
        (REACTIVATED, 'Reactivated'),
        (DELETED, 'Deleted'),
    )

    action = models.CharField(max_length=12, choices=ACTIONS)
    claim_kind = models.CharField(max_length=20)
    claim_id = models.CharField(max_length=64)
    ground = models.ForeignKey(Ground, null=True, blank=True, on_delete=models.SET_NULL, related_name='activity_logs')
    meta = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.action} {self.claim_kind} {self.claim_id}"

    @classmethod
    def record(cls, action, claim, ground=None, kind=None, **meta):
        return cls.objects.create(
            action=action,
            claim_kind=kind or claim.claim_kind,
            claim_id=str(claim.pk),
            ground=ground,
            meta=meta,
        )
