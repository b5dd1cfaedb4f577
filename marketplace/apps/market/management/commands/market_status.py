import json
from django.core.management.base import BaseCommand, CommandError

from marketplace.apps.ledger.services import SettlementLedgerService
from marketplace.apps.pool.models import SimpleStakePool
from marketplace.apps.pool.services import CompoundVaultService, SimpleStakePoolService
from marketplace.apps.tokens.services.share_token import ShareTokenLedger
from marketplace.apps.users.models import MarketUser


class Command(BaseCommand):
    help = "Print pool totals and, optionally, one account's positions."

    def add_arguments(self, parser):
        parser.add_argument("--address", dest="address", help="Account address to report on.")
        parser.add_argument("--json", action="store_true", help="Emit JSON instead of text.")

    def handle(self, *args, **options):
        pool = SimpleStakePool.load()
        vault_service = CompoundVaultService()
        vault = vault_service.vault_view()
        report = {
            "simple": {
                "total_principal": str(pool.total_principal),
                "accrual_index_scaled": str(pool.accrual_index_scaled),
            },
            "compound": {
                "total_pooled": str(vault.total_pooled),
                "total_supply": str(vault.total_supply),
            },
        }

        address = options.get("address")
        if address:
            user = MarketUser.objects.for_address(address).first()
            if user is None:
                raise CommandError(f"No account for {address}")
            simple = SimpleStakePoolService().account_view(user)
            shares = ShareTokenLedger().balance_of(user)
            report["account"] = {
                "address": user.address,
                "principal": str(simple.principal),
                "claimable_interest": str(simple.claimable_interest),
                "shares": str(shares),
                "share_value": str(vault_service.share_value(shares)),
                "ledger_balance": str(SettlementLedgerService().balance_of(user)),
            }

        if options["json"]:
            self.stdout.write(json.dumps(report, indent=2))
            return

        for section, values in report.items():
            self.stdout.write(self.style.SUCCESS(section))
            for key, value in values.items():
                self.stdout.write(f"  {key}: {value}")
