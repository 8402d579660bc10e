"""Asset identifiers, asset descriptions and deposit capacities."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from xinledger.integer import Integer


class AssetError(ValueError):
    """An asset description is invalid."""


def asset_id(name: str) -> bytes:
    """The 32-byte identifier of an asset named by ``name``."""
    return hashlib.sha256(name.encode()).digest()


XIN_ASSET_ID = asset_id("c94ac88f-4671-3976-b60a-09064f1811e8")
BITCOIN_ASSET_ID = asset_id("c6d0c728-2624-429b-8e0d-d9d19b6592fa")
ETHEREUM_ASSET_ID = asset_id("43d61dcd-e413-450d-80b8-101d5e903357")
BOX_ASSET_ID = asset_id("f5ef6b5d-cc5a-3d90-b2c0-a2fd386e7a3c")
MOB_ASSET_ID = asset_id("eea900a8-b327-488c-8d8d-1428702fe240")
USDT_ETHEREUM_ASSET_ID = asset_id("4d8c508b-91c5-375b-92b0-ee702ed2dac5")
USDT_TRON_ASSET_ID = asset_id("b91e18ff-a9ae-3dc7-8679-e935d9a4b34b")
PANDO_USD_ASSET_ID = asset_id("31d2ea9c-95eb-3355-b65b-ba096853bc18")
USDC_ASSET_ID = asset_id("9b180ab6-6abe-3dc0-a13f-04169eb34bfa")
EOS_ASSET_ID = asset_id("6cfe566e-4aad-470b-8c9a-2fd35b49c68d")
SOL_ASSET_ID = asset_id("64692c23-8971-4cf4-84a7-4dd1271dd887")
UNI_ASSET_ID = asset_id("a31e847e-ca87-3162-b4d1-322bc552e831")
DOGE_ASSET_ID = asset_id("6770a1e5-6086-44d5-b60f-545f9d9e8ffd")


@dataclass(frozen=True)
class Asset:
    """An asset as identified on its home chain."""

    chain: bytes
    asset_key: str

    def verify(self) -> None:
        if not any(self.chain):
            raise AssetError(f"invalid asset chain {self!r}")
        if not self.asset_key or self.asset_key.strip() != self.asset_key:
            raise AssetError(f"invalid asset key {self!r}")


XIN_ASSET = Asset(ETHEREUM_ASSET_ID, "0xa974c709cfb4566686553a20790685a47aceaa33")

_CAPACITIES = {
    BITCOIN_ASSET_ID: "2800",
    ETHEREUM_ASSET_ID: "5000",
    XIN_ASSET_ID: "700000",
    BOX_ASSET_ID: "200000000",
    MOB_ASSET_ID: "40000000",
    USDT_ETHEREUM_ASSET_ID: "20000000",
    USDT_TRON_ASSET_ID: "18000000",
    PANDO_USD_ASSET_ID: "1000000000000",
    USDC_ASSET_ID: "2000000",
    EOS_ASSET_ID: "3500000",
    SOL_ASSET_ID: "65000",
    UNI_ASSET_ID: "1100000",
    DOGE_ASSET_ID: "25000000",
}
_DEFAULT_CAPACITY = "115792089237316195423570985008687907853269984665640564039457.58400791"


def get_asset_capacity(asset: bytes) -> Integer:
    """The maximum total deposit balance allowed for an asset id."""
    return Integer.from_string(_CAPACITIES.get(bytes(asset), _DEFAULT_CAPACITY))