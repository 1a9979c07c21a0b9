from walletwatch.classifier import classify, is_alertable
from walletwatch.models import (
    Asset,
    Classification,
    Direction,
    TransferKind,
    TransferRecord,
    WatchedAddress,
)

WALLET = WatchedAddress(label="Main", address="0x" + "a" * 40)
OTHER = "0x" + "d" * 40
THIRD = "0x" + "e" * 40


def make_record(from_address, to_address, kind=TransferKind.TOKEN):
    return TransferRecord(
        block_number=10,
        timestamp=1700000000,
        tx_hash="0xhash",
        from_address=from_address,
        to_address=to_address,
        raw_amount="1",
        asset=Asset(symbol="USDC", decimals=6),
        kind=kind,
    )


def test_inbound_when_wallet_is_recipient():
    result = classify(make_record(OTHER, WALLET.address), WALLET)
    assert result == Classification(Direction.INBOUND, is_self_transfer=False)


def test_outbound_when_wallet_is_sender():
    result = classify(make_record(WALLET.address, OTHER), WALLET)
    assert result == Classification(Direction.OUTBOUND, is_self_transfer=False)


def test_comparison_ignores_case():
    result = classify(make_record(OTHER.upper().replace("0X", "0x"), "0x" + "A" * 40), WALLET)
    assert result.direction is Direction.INBOUND


def test_self_transfer_is_flagged():
    result = classify(make_record(WALLET.address, WALLET.address), WALLET)
    assert result.is_self_transfer is True
    assert result.is_passthrough is True


def test_neither_side_matches():
    result = classify(make_record(OTHER, THIRD), WALLET)
    assert result.direction is Direction.NEITHER
    assert result.is_passthrough is True


def test_missing_party_is_skipped():
    assert classify(make_record(None, WALLET.address), WALLET) is None
    assert classify(make_record(WALLET.address, ""), WALLET) is None


def test_accepts_plain_address_string():
    result = classify(make_record(OTHER, WALLET.address), WALLET.address)
    assert result.direction is Direction.INBOUND


def test_passthrough_alert_policy():
    neither = Classification(Direction.NEITHER)
    assert is_alertable(neither, surface_passthrough=True) is True
    assert is_alertable(neither, surface_passthrough=False) is False
    assert is_alertable(Classification(Direction.INBOUND), surface_passthrough=False)
