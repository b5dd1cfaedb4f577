# marketplace/users/models.py
from django.db import models


class MarketUserQuerySet(models.QuerySet):
    def for_address(self, address: str):
        return self.filter(address__iexact=address.strip())


class MarketUser(models.Model):
    """Account identity on the marketplace, keyed by its EVM address."""

    address = models.CharField(max_length=42, unique=True, db_index=True)
    username = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = MarketUserQuerySet.as_manager()

    def display_name(self):
        return self.username or self.address

    def __str__(self):
        return self.display_name()
