"""
Base Web3 Contract Service
Connection, ABI loading and operator-signed transactions shared by every contract wrapper
"""

from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ContractLogicError
from typing import Optional, Dict, Any
from django.conf import settings
import logging
import json
import time

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 500_000
NATIVE_TRANSFER_GAS = 21_000
RECEIPT_TIMEOUT = 120


class BaseContractService:
    """
    One deployed contract, driven by the marketplace operator wallet.

    Every write in the marketplace is sent by the operator (it custodies WETH and
    holds the NFT transfer approvals), so transactions are always signed with
    OPERATOR_PRIVATE_KEY.
    """

    def __init__(
        self,
        contract_address: str,
        abi_path: str,
        provider_url: Optional[str] = None,
        web3: Optional[Web3] = None,
    ):
        self.provider_url = provider_url or settings.WEB3_PROVIDER_URL
        self.web3 = web3 or Web3(Web3.HTTPProvider(self.provider_url))
        if not self.web3.is_connected():
            raise ConnectionError(f"Web3 provider unreachable: {self.provider_url}")

        with open(abi_path, "r") as f:
            abi = json.load(f)

        self.contract_address = Web3.to_checksum_address(contract_address)
        self.contract: Contract = self.web3.eth.contract(address=self.contract_address, abi=abi)
        logger.debug(f"Bound {type(self).__name__} to {self.contract_address}")

    @staticmethod
    def checksum_address(address: str) -> str:
        return Web3.to_checksum_address(address)

    @property
    def operator(self):
        return self.web3.eth.account.from_key(settings.OPERATOR_PRIVATE_KEY)

    # ============================================================
    # READS
    # ============================================================

    def call_read_function(self, function_name: str, *args) -> Any:
        try:
            return getattr(self.contract.functions, function_name)(*args).call()
        except Exception as e:
            logger.error(f"{self.contract_address}.{function_name}{args} failed: {e}")
            raise

    def get_block_timestamp(self) -> int:
        """Timestamp of the latest block (router deadlines are relative to it)"""
        return self.web3.eth.get_block("latest")["timestamp"]

    # ============================================================
    # OPERATOR WRITES
    # ============================================================

    def transact(self, function, value: int = 0, gas_multiplier: float = 1.2, max_retries: int = 3) -> Dict[str, Any]:
        """
        Send `function` from the operator, retrying on nonce conflicts.

        A revert during gas estimation is raised immediately: it would revert
        on-chain as well.

        Returns:
            Dict with tx_hash, receipt, gas_used and block_number
        """
        sender = self.checksum_address(settings.OPERATOR_ADDRESS)

        for attempt in range(1, max_retries + 1):
            try:
                try:
                    gas_limit = int(function.estimate_gas({"from": sender, "value": value}) * gas_multiplier)
                except ContractLogicError:
                    raise
                except Exception as e:
                    logger.warning(f"Gas estimation failed ({e}), using {DEFAULT_GAS_LIMIT}")
                    gas_limit = DEFAULT_GAS_LIMIT

                tx = function.build_transaction(
                    {
                        "from": sender,
                        "nonce": self.web3.eth.get_transaction_count(sender, "pending"),
                        "gas": gas_limit,
                        "gasPrice": self.web3.eth.gas_price,
                        "value": value,
                        "chainId": self.web3.eth.chain_id,
                    }
                )
                return self._sign_and_send(tx)
            except ValueError as e:
                if "nonce" not in str(e).lower() or attempt == max_retries:
                    raise
                logger.warning(f"Nonce conflict, retrying ({attempt}/{max_retries})")
                time.sleep(1)
            except ContractLogicError as e:
                logger.error(f"{self.contract_address} reverted: {e}")
                raise

        raise RuntimeError("Transaction not sent after maximum retries")

    def send_native(self, to_address: str, value: int) -> Dict[str, Any]:
        """Plain native-currency transfer from the operator"""
        sender = self.checksum_address(settings.OPERATOR_ADDRESS)
        tx = {
            "from": sender,
            "to": self.checksum_address(to_address),
            "value": value,
            "nonce": self.web3.eth.get_transaction_count(sender, "pending"),
            "gas": NATIVE_TRANSFER_GAS,
            "gasPrice": self.web3.eth.gas_price,
            "chainId": self.web3.eth.chain_id,
        }
        return self._sign_and_send(tx)

    def _sign_and_send(self, tx: Dict[str, Any]) -> Dict[str, Any]:
        signed = self.operator.sign_transaction(tx)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT)
        if receipt["status"] == 0:
            raise RuntimeError(f"Transaction {tx_hash.hex()} reverted")

        logger.info(f"Transaction {tx_hash.hex()} mined in block {receipt['blockNumber']}")
        return {
            "tx_hash": tx_hash.hex(),
            "receipt": receipt,
            "gas_used": receipt["gasUsed"],
            "block_number": receipt["blockNumber"],
        }
