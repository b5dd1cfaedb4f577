from django.db.models.signals import post_save
from django.dispatch import receiver
from django.db import transaction
from .models import ShareEvent, ShareBalance, ShareToken


@receiver(post_save, sender=ShareEvent, dispatch_uid="share_apply_event_to_balance")
def share_apply_event_to_balance(sender, instance: ShareEvent, created, **kwargs):
    """
    Apply a mint/burn to the holder balance and to the token supply.
    Runs inside the caller's transaction so the vault sees the new supply immediately.
    """
    if not created:
        return
    delta = instance.amount if instance.kind == "mint" else -instance.amount

    with transaction.atomic():
        token = ShareToken.load(lock=True)
        bal, _ = ShareBalance.objects.select_for_update().get_or_create(user=instance.user)
        bal.balance = bal.balance + delta
        bal.save(update_fields=["balance", "updated_at"])
        token.total_supply = token.total_supply + delta
        token.save(update_fields=["total_supply", "updated_at"])
