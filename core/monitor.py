"""
Inclusion monitoring for the bundler latency benchmark.
Waits on user operation receipts and resolves block timestamps.
"""
from dataclasses import dataclass

from web3 import Web3

from .bundler import BundlerClient, to_int


@dataclass
class Inclusion:
    user_op_hash: str
    tx_hash: str
    block_number: int
    block_timestamp_ms: int
    success: bool = True


class InclusionMonitor:
    """
    Resolves a submitted user operation to the block that included it.

    Usage:
        monitor = InclusionMonitor(web3, bundler)
        inclusion = monitor.wait_for_inclusion(user_op_hash)
        inclusion.block_timestamp_ms
    """

    def __init__(self, web3: Web3, bundler: BundlerClient) -> None:
        self.web3 = web3
        self.bundler = bundler

    def get_block_timestamp_ms(self, block_number: int) -> int:
        """
        Block timestamp from the RPC node, converted from seconds to ms.
        """
        block = self.web3.eth.get_block(block_number)
        return int(block["timestamp"]) * 1000

    def wait_for_inclusion(self, user_op_hash: str) -> Inclusion:
        """
        Block until the bundler reports the operation as included.

        Raises whatever the bundler or node raises; nothing is retried here.
        """
        result = self.bundler.wait_for_user_operation_receipt(user_op_hash)
        receipt = result["receipt"]
        block_number = to_int(receipt["blockNumber"])
        tx_hash = receipt["transactionHash"]
        success = bool(result.get("success", True))
        if not success:
            print(f"[Monitor] {user_op_hash[:10]} included in block {block_number} but reverted")

        return Inclusion(
            user_op_hash=user_op_hash,
            tx_hash=tx_hash,
            block_number=block_number,
            block_timestamp_ms=self.get_block_timestamp_ms(block_number),
            success=success,
        )
