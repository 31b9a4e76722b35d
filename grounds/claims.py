from django.db import models
from django.utils import timezone


class ClaimMixin:
    """Common face of every kind of hold on a ground's slots.

    A claim names the grounds and catalog entries it holds and the dates it
    holds them on (a ``DateScope``). ``covers`` answers which slot ids the
    claim takes away from ``ground_id`` on ``day``.
    """
    claim_kind = None

    @property
    def is_live(self):
        raise NotImplementedError

    def ground_ids(self):
        raise NotImplementedError

    def slot_ids(self):
        raise NotImplementedError

    def date_scope(self):
        raise NotImplementedError

    def covers(self, ground_id, day):
        if not self.is_live or ground_id not in self.ground_ids():
            return set()
        if not self.date_scope().contains(day):
            return set()
        return self.slot_ids()

    def same_claim(self, other):
        return other is not None and type(self) is type(other) and self.pk == other.pk


class StandingClaim(ClaimMixin, models.Model):
    """A claim that is switched on and off rather than booked and cancelled."""

    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'
    STATUS = ((ACTIVE, 'Active'), (INACTIVE, 'Inactive'))

    status = models.CharField(max_length=10, choices=STATUS, default=ACTIVE)
    status_changed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    @property
    def is_active(self):
        return self.status == self.ACTIVE

    @property
    def is_live(self):
        return self.is_active

    def set_status(self, status):
        self.status = status
        self.status_changed_at = timezone.now()
        self.save(update_fields=['status', 'status_changed_at'])
