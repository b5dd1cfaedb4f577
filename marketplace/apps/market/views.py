import json
import logging
import uuid
from functools import wraps

from celery.result import AsyncResult
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from marketplace.celery import app
from marketplace.exceptions import (
    ExternalOperationError,
    InvalidAmountError,
    MarketplaceError,
)
from marketplace.apps.ledger.services import SettlementLedgerService
from marketplace.apps.pool.accounting import MANTISSA
from marketplace.apps.pool.models import SimpleStakePool
from marketplace.apps.pool.services import CompoundVaultService, SimpleStakePoolService
from marketplace.apps.tokens.fields import UINT256_MAX
from marketplace.apps.tokens.services.share_token import ShareTokenLedger
from marketplace.apps.users.models import MarketUser
from .fees import MARKETPLACE_FEE_RATE
from .services import SettlementStatusStore
from .tasks import process_purchase

logger = logging.getLogger(__name__)


class BadRequest(Exception):
    pass


class UnknownAccount(Exception):
    pass


def json_endpoint(view):
    """Map marketplace failures onto JSON error responses."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except BadRequest as e:
            return JsonResponse({"error": "invalid-request", "detail": str(e)}, status=400)
        except UnknownAccount as e:
            return JsonResponse({"error": "unknown-account", "detail": str(e)}, status=404)
        except ExternalOperationError as e:
            return JsonResponse({"error": e.code, "detail": str(e)}, status=502)
        except MarketplaceError as e:
            return JsonResponse({"error": e.code, "detail": str(e)}, status=400)

    return wrapper


def _body(request) -> dict:
    try:
        data = json.loads(request.body or b"{}")
    except ValueError:
        raise BadRequest("body is not valid JSON")
    if not isinstance(data, dict):
        raise BadRequest("body must be a JSON object")
    return data


def _field(data: dict, name: str):
    if data.get(name) in (None, ""):
        raise BadRequest(f"missing field '{name}'")
    return data[name]


def parse_amount(value) -> int:
    """Accept a JSON integer or a decimal string; anything else is invalid."""
    if isinstance(value, bool):
        raise InvalidAmountError(f"not an amount: {value!r}")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        amount = int(value.strip())
    else:
        raise InvalidAmountError(f"not an amount: {value!r}")
    if amount > UINT256_MAX:
        raise InvalidAmountError(f"amount {amount} does not fit in uint256")
    return amount


def _existing_user(address: str) -> MarketUser:
    user = MarketUser.objects.for_address(address).first()
    if user is None:
        raise UnknownAccount(f"no account for {address}")
    return user


def _user_for_stake(address: str) -> MarketUser:
    user = MarketUser.objects.for_address(address).first()
    if user is None:
        user = MarketUser.objects.create(address=address.strip())
    return user


@csrf_exempt
@require_POST
@json_endpoint
def simple_stake_view(request):
    data = _body(request)
    amount = parse_amount(_field(data, "amount"))
    user = _user_for_stake(_field(data, "address"))
    account = SimpleStakePoolService().stake(user, amount)
    return JsonResponse({"address": user.address, "principal": str(account.principal)})


@csrf_exempt
@require_POST
@json_endpoint
def simple_unstake_view(request):
    data = _body(request)
    user = _existing_user(_field(data, "address"))
    amount = parse_amount(_field(data, "amount"))
    payout = SimpleStakePoolService().unstake(user, amount)
    return JsonResponse({"address": user.address, "credited": str(payout)})


@csrf_exempt
@require_POST
@json_endpoint
def compound_stake_view(request):
    data = _body(request)
    amount = parse_amount(_field(data, "amount"))
    user = _user_for_stake(_field(data, "address"))
    shares = CompoundVaultService().deposit(user, amount)
    return JsonResponse({"address": user.address, "shares": str(shares)})


@csrf_exempt
@require_POST
@json_endpoint
def compound_unstake_view(request):
    data = _body(request)
    user = _existing_user(_field(data, "address"))
    shares = parse_amount(_field(data, "shares"))
    amount = CompoundVaultService().withdraw(user, shares)
    return JsonResponse({"address": user.address, "credited": str(amount)})


@csrf_exempt
@require_POST
@json_endpoint
def ledger_withdraw_view(request):
    data = _body(request)
    user = _existing_user(_field(data, "address"))
    value = parse_amount(_field(data, "value"))
    entry = SettlementLedgerService().withdraw(user, value)
    return JsonResponse(
        {"address": user.address, "withdrawn": str(value), "tx_hash": entry.tx_hash if entry else None}
    )


@csrf_exempt
@require_POST
@json_endpoint
def purchase_view(request):
    data = _body(request)
    try:
        listing_id = int(_field(data, "listing_id"))
    except (TypeError, ValueError):
        raise BadRequest("listing_id must be an integer")
    buyer = str(_field(data, "buyer")).strip()
    payment_token = str(_field(data, "payment_token")).strip()

    task_id = str(uuid.uuid4())
    # Record the status first so a fast worker never updates a missing key.
    SettlementStatusStore().create(task_id, listing_id, buyer, payment_token)
    process_purchase.apply_async(args=[listing_id, buyer, payment_token], task_id=task_id)
    logger.info(f"Queued purchase of listing {listing_id} by {buyer} as {task_id}")
    return JsonResponse({"task_id": task_id}, status=202)


@require_GET
def purchase_status_view(request, task_id: str):
    status_data = SettlementStatusStore().get(task_id)
    if status_data:
        return JsonResponse(status_data)

    # Status expired or never recorded: fall back to the Celery result
    result = AsyncResult(task_id, app=app)
    if result.ready():
        if result.successful():
            return JsonResponse({"task_id": task_id, "status": "success", "stage": "completed", **result.result})
        return JsonResponse(
            {"task_id": task_id, "status": "error", "stage": "completed", "error": str(result.info)}
        )
    return JsonResponse({"task_id": task_id, "status": "pending", "stage": result.state.lower()})


@require_GET
@json_endpoint
def account_view(request, address: str):
    user = _existing_user(address)
    simple = SimpleStakePoolService().account_view(user)
    shares = ShareTokenLedger().balance_of(user)
    return JsonResponse(
        {
            "address": user.address,
            "simple": {
                "principal": str(simple.principal),
                "earned": str(simple.earned),
                "pending": str(simple.pending),
                "claimable_interest": str(simple.claimable_interest),
            },
            "compound": {
                "shares": str(shares),
                "share_value": str(CompoundVaultService().share_value(shares)),
            },
            "ledger_balance": str(SettlementLedgerService().balance_of(user)),
        }
    )


@require_GET
def pools_view(request):
    pool = SimpleStakePool.load()
    vault = CompoundVaultService().vault_view()
    return JsonResponse(
        {
            "fee_rate": str(MARKETPLACE_FEE_RATE),
            "mantissa": str(MANTISSA),
            "simple": {
                "total_principal": str(pool.total_principal),
                "accrual_index_scaled": str(pool.accrual_index_scaled),
            },
            "compound": {
                "total_pooled": str(vault.total_pooled),
                "total_supply": str(vault.total_supply),
            },
        }
    )
