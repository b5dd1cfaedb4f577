from django.db.models.signals import post_save
from django.dispatch import receiver
from django.db import transaction
from .models import LedgerEntry, LedgerBalance


@receiver(post_save, sender=LedgerEntry, dispatch_uid="ledger_apply_entry_to_balance")
def ledger_apply_entry_to_balance(sender, instance: LedgerEntry, created, **kwargs):
    """
    When a new entry is created, move the user's withdrawable balance.
    """
    if not created:
        return

    # Run inside an atomic transaction so select_for_update is valid
    with transaction.atomic():
        bal, _ = LedgerBalance.objects.select_for_update().get_or_create(user=instance.user)
        if instance.kind == "credit":
            bal.balance = bal.balance + instance.amount
        else:
            bal.balance = bal.balance - instance.amount
        bal.save(update_fields=["balance", "updated_at"])
