from django.db import models

from .dates import WEEKDAY_CODES, weekday_index


class Venue(models.Model):
    name = models.CharField(max_length=100)
    city = models.CharField(max_length=100)
    address = models.CharField(max_length=200, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.name}, {self.city}"


class Sport(models.Model):
    name = models.CharField(max_length=50, unique=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name


class Ground(models.Model):
    name = models.CharField(max_length=100)
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name='grounds')
    supported_sports = models.ManyToManyField(Sport, blank=True, related_name='grounds')

    # which claim kinds the ground accepts
    allows_slot_booking = models.BooleanField(default=True)
    allows_academy = models.BooleanField(default=False)
    allows_membership = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    @property
    def is_available(self):
        return self.is_active and self.venue.is_active


class SlotTime(models.Model):
    """One fixed, bookable time window of a ground with a price per weekday."""

    ground = models.ForeignKey(Ground, on_delete=models.CASCADE, related_name='slot_times')
    label = models.CharField(max_length=40)
    start_time = models.TimeField()
    end_time = models.TimeField()

    price_sun = models.PositiveIntegerField(default=0)
    price_mon = models.PositiveIntegerField(default=0)
    price_tue = models.PositiveIntegerField(default=0)
    price_wed = models.PositiveIntegerField(default=0)
    price_thu = models.PositiveIntegerField(default=0)
    price_fri = models.PositiveIntegerField(default=0)
    price_sat = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = ('ground', 'label')
        ordering = ('ground', 'start_time')

    def __str__(self):
        return f"{self.ground.name} - {self.label}"

    @property
    def prices(self):
        """Weekday prices indexed Sunday=0 .. Saturday=6."""
        return [getattr(self, f'price_{code}') for code in WEEKDAY_CODES]

    @property
    def price_row(self):
        return {code: getattr(self, f'price_{code}') for code in WEEKDAY_CODES}

    def set_prices(self, prices):
        for code, amount in prices.items():
            if code not in WEEKDAY_CODES:
                raise ValueError(f'Unknown weekday: {code}')
            setattr(self, f'price_{code}', amount)

    def price_on(self, day):
        return self.prices[weekday_index(day)]
