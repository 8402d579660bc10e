import pytest

from xinledger.asset import (
    BITCOIN_ASSET_ID,
    ETHEREUM_ASSET_ID,
    XIN_ASSET,
    XIN_ASSET_ID,
    Asset,
    AssetError,
    asset_id,
    get_asset_capacity,
)


def test_asset_id_is_deterministic():
    assert asset_id("c94ac88f-4671-3976-b60a-09064f1811e8") == XIN_ASSET_ID
    assert len(asset_id("anything")) == 32


def test_verify_valid_asset():
    assert XIN_ASSET.verify() is None
    assert XIN_ASSET.chain == ETHEREUM_ASSET_ID


@pytest.mark.parametrize(
    "asset, message",
    [
        (Asset(bytes(32), "0xabc"), "chain"),
        (Asset(ETHEREUM_ASSET_ID, ""), "key"),
        (Asset(ETHEREUM_ASSET_ID, " 0xabc"), "key"),
        (Asset(ETHEREUM_ASSET_ID, "0xabc\n"), "key"),
    ],
)
def test_verify_invalid_asset(asset, message):
    with pytest.raises(AssetError, match=message):
        asset.verify()


def test_capacities():
    assert str(get_asset_capacity(BITCOIN_ASSET_ID)) == "2800.00000000"
    assert str(get_asset_capacity(ETHEREUM_ASSET_ID)) == "5000.00000000"
    assert str(get_asset_capacity(XIN_ASSET_ID)) == "700000.00000000"


def test_default_capacity():
    unknown = asset_id("unknown-asset")
    assert str(get_asset_capacity(unknown)) == (
        "115792089237316195423570985008687907853269984665640564039457.58400791"
    )