from .simple_pool import SimpleStakePoolService, SimpleAccountView
from .compound_vault import CompoundVaultService, VaultView

__all__ = [
    "SimpleStakePoolService",
    "SimpleAccountView",
    "CompoundVaultService",
    "VaultView",
]
