"""Tests for the owner key and smart account encoding."""

import pytest
from eth_abi import decode
from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from config import BICONOMY_ECDSA_MODULE, BICONOMY_FACTORY, ENTRY_POINT_V06, SetupError
from core.identity import DUMMY_ECDSA_SIGNATURE, SmartAccount, load_owner
from core.injector import UserOperation

OWNER_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
OWNER_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
ACCOUNT_ADDRESS = Web3.to_checksum_address("0x00000000000000000000000000000000000000a1")


@pytest.fixture
def account() -> SmartAccount:
    # No request is ever sent: every chain read is stubbed below
    web3 = Web3(Web3.HTTPProvider("http://127.0.0.1:8545"))
    smart_account = SmartAccount(
        web3, load_owner(OWNER_KEY), ENTRY_POINT_V06, BICONOMY_FACTORY, BICONOMY_ECDSA_MODULE
    )
    smart_account._address = ACCOUNT_ADDRESS
    return smart_account


def test_load_owner() -> None:
    assert load_owner(OWNER_KEY).address == OWNER_ADDRESS


def test_load_owner_rejects_bad_key() -> None:
    with pytest.raises(SetupError):
        load_owner("0x1234")


def test_encode_execute(account) -> None:
    call_data = account.encode_execute(ACCOUNT_ADDRESS, 1234)

    dest, value, func = decode(["address", "uint256", "bytes"], call_data[4:])
    assert dest.lower() == ACCOUNT_ADDRESS.lower()
    assert value == 1234
    assert func == b""


def test_dummy_signature_wraps_module(account) -> None:
    signature, module = decode(["bytes", "address"], account.dummy_signature())

    assert signature == DUMMY_ECDSA_SIGNATURE
    assert len(signature) == 65
    assert module.lower() == BICONOMY_ECDSA_MODULE.lower()


def test_init_code_only_until_deployed(account, monkeypatch) -> None:
    monkeypatch.setattr(account, "is_deployed", lambda: False)
    init_code = account.get_init_code()
    assert init_code[:20] == Web3.to_bytes(hexstr=BICONOMY_FACTORY)
    assert len(init_code) > 24

    monkeypatch.setattr(account, "is_deployed", lambda: True)
    assert account.get_init_code() == b""


def test_sign_user_operation_recovers_owner(account, monkeypatch) -> None:
    op_hash = bytes(range(32))
    monkeypatch.setattr(account, "get_user_op_hash", lambda op: op_hash)
    op = UserOperation(sender=ACCOUNT_ADDRESS, nonce=0)

    signature, module = decode(["bytes", "address"], account.sign_user_operation(op))

    assert module.lower() == BICONOMY_ECDSA_MODULE.lower()
    recovered = Account.recover_message(encode_defunct(primitive=op_hash), signature=signature)
    assert recovered == OWNER_ADDRESS
