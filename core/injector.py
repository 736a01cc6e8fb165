"""
User operation injection engine for the bundler latency benchmark.
Builds, prices, signs and submits ERC-4337 (v0.6) user operations.
"""
import random
import typing as t
from dataclasses import dataclass, replace
from decimal import Decimal

from web3 import Web3

from .bundler import BundlerClient
from .identity import SmartAccount


@dataclass
class UserOperation:
    sender: str
    nonce: int
    init_code: bytes = b""
    call_data: bytes = b""
    call_gas_limit: int = 0
    verification_gas_limit: int = 0
    pre_verification_gas: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0
    paymaster_and_data: bytes = b""
    signature: bytes = b""

    def as_tuple(self) -> t.Tuple[t.Any, ...]:
        """Field order of the EntryPoint v0.6 `UserOperation` struct."""
        return (
            self.sender,
            self.nonce,
            self.init_code,
            self.call_data,
            self.call_gas_limit,
            self.verification_gas_limit,
            self.pre_verification_gas,
            self.max_fee_per_gas,
            self.max_priority_fee_per_gas,
            self.paymaster_and_data,
            self.signature,
        )

    def to_rpc(self) -> t.Dict[str, str]:
        """JSON-RPC form: quantities and bytes as 0x-prefixed hex."""
        return {
            "sender": self.sender,
            "nonce": hex(self.nonce),
            "initCode": Web3.to_hex(self.init_code),
            "callData": Web3.to_hex(self.call_data),
            "callGasLimit": hex(self.call_gas_limit),
            "verificationGasLimit": hex(self.verification_gas_limit),
            "preVerificationGas": hex(self.pre_verification_gas),
            "maxFeePerGas": hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": hex(self.max_priority_fee_per_gas),
            "paymasterAndData": Web3.to_hex(self.paymaster_and_data),
            "signature": Web3.to_hex(self.signature),
        }


class UserOperationInjector:
    """
    Prepares and submits self-transfer user operations for one smart account
    through one bundler.
    """

    def __init__(
        self,
        web3: Web3,
        account: SmartAccount,
        bundler: BundlerClient,
        entry_point: str,
        max_priority_fee_gwei: str,
        value_range: int,
    ) -> None:
        """
        Args:
            web3: RPC connection used for fee data.
            account: Sender of every operation.
            bundler: Estimates gas and receives the operations.
            entry_point: EntryPoint address the bundler should target.
            max_priority_fee_gwei: Priority fee override, e.g. "0.002".
            value_range: Transfers use a random value in [0, value_range) wei.
        """
        self.web3 = web3
        self.account = account
        self.bundler = bundler
        self.entry_point = entry_point
        self.max_priority_fee = Web3.to_wei(Decimal(max_priority_fee_gwei), "gwei")
        self.value_range = value_range

    def estimate_fees(self) -> t.Tuple[int, int]:
        """
        Returns:
            (maxFeePerGas, maxPriorityFeePerGas).

        maxFeePerGas follows the node: 1.2 x base fee + suggested tip. Only
        the priority fee is replaced by the configured override.
        """
        base_fee = self.web3.eth.get_block("latest")["baseFeePerGas"]
        suggested_tip = self.web3.eth.max_priority_fee
        max_fee = base_fee * 12 // 10 + suggested_tip
        return max_fee, self.max_priority_fee

    def build(self) -> UserOperation:
        """
        Unsigned, unestimated self-transfer from the smart account.
        """
        sender = self.account.address
        value = random.randrange(self.value_range) if self.value_range > 0 else 0
        max_fee, max_priority_fee = self.estimate_fees()
        return UserOperation(
            sender=sender,
            nonce=self.account.get_nonce(),
            init_code=self.account.get_init_code(),
            call_data=self.account.encode_execute(sender, value),
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=max_priority_fee,
        )

    def prepare(self) -> UserOperation:
        """
        Build, gas-estimate (with a dummy signature) and sign one operation.
        """
        draft = replace(self.build(), signature=self.account.dummy_signature())
        gas = self.bundler.estimate_user_operation_gas(draft.to_rpc(), self.entry_point)
        user_op = replace(
            draft,
            call_gas_limit=gas["callGasLimit"],
            verification_gas_limit=gas["verificationGasLimit"],
            pre_verification_gas=gas["preVerificationGas"],
            signature=b"",
        )
        user_op.signature = self.account.sign_user_operation(user_op)
        return user_op

    def send(self, user_op: UserOperation) -> str:
        """Submit a signed operation, returning the user operation hash."""
        return self.bundler.send_user_operation(user_op.to_rpc(), self.entry_point)

    def send_transaction(self, _: t.Any = None) -> str:
        """
        Prepare and submit in one step (SDK-style `sendTransaction`).
        """
        return self.send(self.prepare())
