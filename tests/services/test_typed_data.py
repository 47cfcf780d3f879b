"""Tests for the typed structured-data hasher."""

import pytest
from eth_account.messages import encode_typed_data

from scheduled_tx.services.typed_data import (
    DOMAIN_NAME,
    DOMAIN_TYPEHASH,
    DOMAIN_VERSION,
    EIP712_PREFIX,
    SCHEDULED_TX_TYPE,
    UINT64_MAX,
    DomainContext,
    encode_transaction_data,
    hash_permit,
    hash_struct,
)
from scheduled_tx.utils.hash import keccak256, keccak256_hex
from tests.conftest import CHAIN_ID, MODULE_ADDRESS, OTHER_VAULT_ADDRESS, START

# keccak256("EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)")
EIP712_DOMAIN_TYPEHASH_HEX = "8b73c3c69bb8fe3d512ecc4cf759cc79239f7b179b0ffacaa9a75d522b39400f"
KECCAK_EMPTY_HEX = "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
KECCAK_VERSION_ONE_HEX = "c89efdaa54c0f20c7adf612882df0950f5a951637e0307cdcb4c672f298b8bc6"


def _typed_message(domain, permit) -> dict:
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "ScheduledTransaction": [
                {"name": "to", "type": "address"},
                {"name": "value", "type": "uint256"},
                {"name": "data", "type": "bytes"},
                {"name": "nonce", "type": "uint256"},
                {"name": "notBefore", "type": "uint64"},
                {"name": "notAfter", "type": "uint64"},
            ],
        },
        "primaryType": "ScheduledTransaction",
        "domain": {
            "name": domain.name,
            "version": domain.version,
            "chainId": domain.chain_id,
            "verifyingContract": domain.verifying_contract,
        },
        "message": {
            "to": permit.target,
            "value": permit.amount,
            "data": permit.payload,
            "nonce": permit.nonce,
            "notBefore": permit.not_before,
            "notAfter": permit.not_after,
        },
    }


def test_keccak_fixed_vectors() -> None:
    assert keccak256(b"").hex() == KECCAK_EMPTY_HEX
    assert keccak256_hex(b"1") == "0x" + KECCAK_VERSION_ONE_HEX


def test_domain_constants() -> None:
    assert DOMAIN_NAME == "ScheduledTxModule"
    assert DOMAIN_VERSION == "1"
    assert DOMAIN_TYPEHASH.hex() == EIP712_DOMAIN_TYPEHASH_HEX
    assert SCHEDULED_TX_TYPE == (
        "ScheduledTransaction(address to,uint256 value,bytes data,uint256 nonce,"
        "uint64 notBefore,uint64 notAfter)"
    )


def test_digest_matches_independent_eip712_encoder(domain, make_permit) -> None:
    """eth-account's typed-data encoder must agree on every component."""
    permit = make_permit(payload=b"\xde\xad\xbe\xef", nonce=2**200 + 7)
    signable = encode_typed_data(full_message=_typed_message(domain, permit))

    assert signable.header == domain.separator
    assert signable.body == hash_struct(permit)
    assert keccak256(b"\x19" + signable.version + signable.header + signable.body) == hash_permit(
        domain, permit
    )


def test_transaction_data_layout(domain, make_permit) -> None:
    permit = make_permit()
    data = encode_transaction_data(domain, permit)

    assert len(data) == 66
    assert data[:2] == EIP712_PREFIX
    assert data[2:34] == domain.separator
    assert data[34:] == hash_struct(permit)
    assert hash_permit(domain, permit) == keccak256(data)


def test_digest_is_deterministic(domain, make_permit) -> None:
    first = hash_permit(domain, make_permit())
    second = hash_permit(DomainContext(CHAIN_ID, MODULE_ADDRESS.lower()), make_permit())
    assert len(first) == 32
    assert first == second


@pytest.mark.parametrize(
    "field, value",
    [
        ("target", "0x4444444444444444444444444444444444444444"),
        ("amount", 10**18 + 1),
        ("payload", b"\x01"),
        ("nonce", 2),
        ("not_before", START + 1),
        ("not_after", START + 1),
    ],
)
def test_every_signed_field_changes_digest(domain, make_permit, field, value) -> None:
    assert hash_permit(domain, make_permit()) != hash_permit(domain, make_permit(**{field: value}))


def test_single_payload_bit_changes_digest(domain, make_permit) -> None:
    payload = bytes(range(64))
    flipped = payload[:31] + bytes([payload[31] ^ 0x01]) + payload[32:]
    assert hash_permit(domain, make_permit(payload=payload)) != hash_permit(
        domain, make_permit(payload=flipped)
    )


def test_account_is_not_part_of_digest(domain, make_permit) -> None:
    assert hash_permit(domain, make_permit()) == hash_permit(
        domain, make_permit(account=OTHER_VAULT_ADDRESS)
    )


def test_domain_binds_chain_and_module(domain, make_permit) -> None:
    permit = make_permit()
    other_chain = DomainContext(chain_id=CHAIN_ID + 1, verifying_contract=MODULE_ADDRESS)
    other_module = DomainContext(chain_id=CHAIN_ID, verifying_contract=OTHER_VAULT_ADDRESS)

    digest = hash_permit(domain, permit)
    assert digest != hash_permit(other_chain, permit)
    assert digest != hash_permit(other_module, permit)


def test_domain_separator_is_cached(domain) -> None:
    assert domain.separator is domain.separator
    assert domain.name == DOMAIN_NAME
    assert domain.version == DOMAIN_VERSION


def test_inverted_window_is_constructible(make_permit) -> None:
    permit = make_permit(not_before=START + 100, not_after=START)
    assert permit.not_before > permit.not_after


def test_permit_normalizes_addresses(make_permit) -> None:
    permit = make_permit(account="0x5615deb798bb3e4dfa0139dfa1b3d433cc23b72f")
    assert permit.account == "0x5615dEB798BB3E4dFa0139dFa1b3D433Cc23b72f"


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"amount": -1}, ValueError),
        ({"nonce": 2**256}, ValueError),
        ({"not_after": UINT64_MAX + 1}, ValueError),
        ({"not_before": True}, TypeError),
        ({"payload": "0x00"}, TypeError),
        ({"target": "0x1234"}, ValueError),
    ],
)
def test_permit_rejects_malformed_fields(make_permit, overrides, error) -> None:
    with pytest.raises(error):
        make_permit(**overrides)
