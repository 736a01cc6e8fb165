"""
Identity management for the bundler latency benchmark.
Owner Key & Biconomy Smart Account (v2, EntryPoint v0.6).
"""
import typing as t
from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from web3 import Web3

from config import BICONOMY_ACCOUNT_INDEX, BICONOMY_ECDSA_MODULE, BICONOMY_FACTORY, SetupError

ENTRY_POINT_ABI: t.List[t.Dict[str, t.Any]] = [
    {
        "name": "getNonce",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "sender", "type": "address"},
            {"name": "key", "type": "uint192"},
        ],
        "outputs": [{"name": "nonce", "type": "uint256"}],
    },
    {
        "name": "getUserOpHash",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {
                "name": "userOp",
                "type": "tuple",
                "components": [
                    {"name": "sender", "type": "address"},
                    {"name": "nonce", "type": "uint256"},
                    {"name": "initCode", "type": "bytes"},
                    {"name": "callData", "type": "bytes"},
                    {"name": "callGasLimit", "type": "uint256"},
                    {"name": "verificationGasLimit", "type": "uint256"},
                    {"name": "preVerificationGas", "type": "uint256"},
                    {"name": "maxFeePerGas", "type": "uint256"},
                    {"name": "maxPriorityFeePerGas", "type": "uint256"},
                    {"name": "paymasterAndData", "type": "bytes"},
                    {"name": "signature", "type": "bytes"},
                ],
            }
        ],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
]

FACTORY_ABI: t.List[t.Dict[str, t.Any]] = [
    {
        "name": "getAddressForCounterFactualAccount",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "moduleSetupContract", "type": "address"},
            {"name": "moduleSetupData", "type": "bytes"},
            {"name": "index", "type": "uint256"},
        ],
        "outputs": [{"name": "_account", "type": "address"}],
    },
    {
        "name": "deployCounterFactualAccount",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "moduleSetupContract", "type": "address"},
            {"name": "moduleSetupData", "type": "bytes"},
            {"name": "index", "type": "uint256"},
        ],
        "outputs": [{"name": "proxy", "type": "address"}],
    },
]

ECDSA_MODULE_ABI: t.List[t.Dict[str, t.Any]] = [
    {
        "name": "initForSmartAccount",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "eoaOwner", "type": "address"}],
        "outputs": [{"name": "", "type": "address"}],
    },
]

SMART_ACCOUNT_ABI: t.List[t.Dict[str, t.Any]] = [
    {
        "name": "execute_ncC",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "dest", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "func", "type": "bytes"},
        ],
        "outputs": [],
    },
]

# 65-byte ECDSA placeholder accepted by the validation module during gas estimation
DUMMY_ECDSA_SIGNATURE: bytes = bytes.fromhex(
    "fffffffffffffffffffffffffffffff000000000000000000000000000000000"
    "7aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa1c"
)


def load_owner(private_key: str) -> LocalAccount:
    """
    Build the owner signer from a hex private key.
    """
    try:
        return Account.from_key(private_key)
    except Exception as e:
        raise SetupError(f"Invalid PRIVATE_KEY: {e}") from e


class SmartAccount:
    """
    Biconomy smart account v2 owned by a single ECDSA key.

    The account is counterfactual: its address comes from the factory and it
    is deployed by the initCode of its first user operation.
    """

    def __init__(
        self,
        web3: Web3,
        owner: LocalAccount,
        entry_point: str,
        factory: str,
        ecdsa_module: str,
        index: int = 0,
    ) -> None:
        self.web3 = web3
        self.owner = owner
        self.index = index
        self.ecdsa_module = Web3.to_checksum_address(ecdsa_module)
        self.entry_point = web3.eth.contract(
            address=Web3.to_checksum_address(entry_point), abi=ENTRY_POINT_ABI
        )
        self.factory = web3.eth.contract(
            address=Web3.to_checksum_address(factory), abi=FACTORY_ABI
        )
        self._module = web3.eth.contract(address=self.ecdsa_module, abi=ECDSA_MODULE_ABI)
        self._account = web3.eth.contract(abi=SMART_ACCOUNT_ABI)
        self._address: t.Optional[str] = None
        self._deployed = False

    def _module_setup_data(self) -> bytes:
        return Web3.to_bytes(
            hexstr=self._module.encode_abi("initForSmartAccount", args=[self.owner.address])
        )

    @property
    def address(self) -> str:
        """
        Counterfactual address from the factory, resolved once.
        """
        if self._address is None:
            try:
                self._address = self.factory.functions.getAddressForCounterFactualAccount(
                    self.ecdsa_module, self._module_setup_data(), self.index
                ).call()
            except Exception as e:
                raise SetupError(f"Could not resolve smart account address: {e}") from e
        return self._address

    def is_deployed(self) -> bool:
        # Deployment is permanent, skip the lookup once seen
        if not self._deployed:
            self._deployed = len(self.web3.eth.get_code(self.address)) > 0
        return self._deployed

    def get_nonce(self) -> int:
        return self.entry_point.functions.getNonce(self.address, 0).call()

    def get_init_code(self) -> bytes:
        """
        Factory address + deploy calldata, or empty bytes once deployed.
        """
        if self.is_deployed():
            return b""
        deploy_data = self.factory.encode_abi(
            "deployCounterFactualAccount",
            args=[self.ecdsa_module, self._module_setup_data(), self.index],
        )
        return Web3.to_bytes(hexstr=self.factory.address) + Web3.to_bytes(hexstr=deploy_data)

    def encode_execute(self, to: str, value: int, data: bytes = b"") -> bytes:
        return Web3.to_bytes(
            hexstr=self._account.encode_abi("execute_ncC", args=[to, value, data])
        )

    def _wrap_signature(self, signature: bytes) -> bytes:
        # The account routes validation to the module encoded next to the signature
        return encode(["bytes", "address"], [signature, self.ecdsa_module])

    def dummy_signature(self) -> bytes:
        return self._wrap_signature(DUMMY_ECDSA_SIGNATURE)

    def get_user_op_hash(self, user_op: t.Any) -> bytes:
        return self.entry_point.functions.getUserOpHash(user_op.as_tuple()).call()

    def sign_user_operation(self, user_op: t.Any) -> bytes:
        """
        Sign the EntryPoint hash of `user_op` with the owner key (EIP-191).
        """
        op_hash = self.get_user_op_hash(user_op)
        signed = self.owner.sign_message(encode_defunct(primitive=bytes(op_hash)))
        return self._wrap_signature(bytes(signed.signature))


def create_smart_account(web3: Web3, private_key: str, entry_point: str) -> SmartAccount:
    """
    Build the benchmark's smart account and resolve its address up front.
    """
    account = SmartAccount(
        web3,
        load_owner(private_key),
        entry_point,
        BICONOMY_FACTORY,
        BICONOMY_ECDSA_MODULE,
        index=BICONOMY_ACCOUNT_INDEX,
    )
    print(f"[Setup] Owner {account.owner.address} -> smart account {account.address}")
    return account
