from django.db import models

from grounds.claims import StandingClaim
from grounds.dates import DateScope, WEEKDAY_CODES
from grounds.models import Ground, SlotTime, Sport


class RecurringProgram(StandingClaim):
    """A standing weekly hold on a ground's slots, split into morning and evening."""

    name = models.CharField(max_length=100)
    ground = models.ForeignKey(Ground, on_delete=models.CASCADE, related_name='%(class)s_programs')
    sport = models.ForeignKey(Sport, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_programs')

    morning_slots = models.ManyToManyField(SlotTime, blank=True, related_name='%(class)s_morning')
    evening_slots = models.ManyToManyField(SlotTime, blank=True, related_name='%(class)s_evening')

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.name} ({self.ground.name})"

    def ground_ids(self):
        return {self.ground_id}

    def slot_ids(self):
        return {s.pk for s in self.morning_slots.all()} | {s.pk for s in self.evening_slots.all()}


class Academy(RecurringProgram):
    claim_kind = 'academy'

    # weekday codes ('sun' .. 'sat') the academy meets on
    active_days = models.JSONField(default=list)

    class Meta:
        verbose_name_plural = 'academies'

    def date_scope(self):
        return DateScope(weekdays=self.active_days)

    @property
    def sorted_active_days(self):
        return sorted(self.active_days, key=WEEKDAY_CODES.index)


class Membership(RecurringProgram):
    claim_kind = 'membership'

    def date_scope(self):
        return DateScope()
