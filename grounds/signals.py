from django.db.models.signals import post_save
from django.dispatch import receiver

from .catalog import create_catalog
from .models import Ground


@receiver(post_save, sender=Ground)
def create_ground_catalog(sender, instance, created, raw=False, **kwargs):
    """Give every new ground its fixed slot catalog."""
    if created and not raw:
        create_catalog(instance)
