from django.db import models
from django.utils import timezone

from grounds.claims import StandingClaim
from grounds.dates import DateScope
from grounds.models import Ground, SlotTime


class EventBlock(StandingClaim):
    """Listed slots of one or more grounds held for every day of an event.

    ``start_date`` is stored at 00:00:00.000 and ``end_date`` at
    23:59:59.999 of their local days, so the range is whole-day inclusive.
    """
    claim_kind = 'event'

    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)

    grounds = models.ManyToManyField(Ground, related_name='event_blocks')
    slots = models.ManyToManyField(SlotTime, related_name='event_blocks')

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    class Meta:
        ordering = ['-start_date']

    def __str__(self):
        return f"{self.name} ({self.first_day} - {self.last_day})"

    @property
    def first_day(self):
        return timezone.localtime(self.start_date).date()

    @property
    def last_day(self):
        return timezone.localtime(self.end_date).date()

    def ground_ids(self):
        return {g.pk for g in self.grounds.all()}

    def slot_ids(self):
        return {s.pk for s in self.slots.all()}

    def date_scope(self):
        return DateScope(first=self.first_day, last=self.last_day)

    def blocks_ground_on(self, ground_id, day):
        """True when the event holds ``ground_id`` on ``day``, whatever the slot."""
        return self.is_live and ground_id in self.ground_ids() and self.date_scope().contains(day)
