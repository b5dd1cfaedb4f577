from django.urls import path
from . import views

urlpatterns = [
    path("simple/stake/", views.simple_stake_view, name="simple_stake"),
    path("simple/unstake/", views.simple_unstake_view, name="simple_unstake"),
    path("compound/stake/", views.compound_stake_view, name="compound_stake"),
    path("compound/unstake/", views.compound_unstake_view, name="compound_unstake"),
    path("ledger/withdraw/", views.ledger_withdraw_view, name="ledger_withdraw"),
    path("purchase/", views.purchase_view, name="purchase"),
    path("purchase/status/<str:task_id>/", views.purchase_status_view, name="purchase_status"),
    path("accounts/<str:address>/", views.account_view, name="account"),
    path("pools/", views.pools_view, name="pools"),
]
