import pytest

from xinledger.encoding import DecodeError
from xinledger.integer import Integer
from xinledger.model import (
    MINT_GROUP_UNIVERSAL,
    CosiSignature,
    Input,
    MintDistribution,
    Output,
    OutputType,
    Round,
    RoundLink,
    SignedTransaction,
    Snapshot,
    SnapshotWithTopologicalOrder,
    UTXOWithLock,
)
from xinledger.records import (
    marshal_mint_distribution,
    marshal_round,
    marshal_snapshot,
    marshal_transaction,
    marshal_utxo,
    payload_marshal,
    snapshot_payload,
    unmarshal_mint_distribution,
    unmarshal_round,
    unmarshal_snapshot,
    unmarshal_transaction,
    unmarshal_utxo,
)
from xinledger.script import Script

WITHDRAWAL_RAW = "777700052dc0ab2919c77daea5cfc0b37a2beea02142e8fdc4f60409fd40b256bb13ea290007eff98bbf1fd4632380b3f81bec40b54ceaa5d10e181b2c9e141da28b3d13c5460001000000000000a348712f7881be7a7bec9935d46578fd612a96e1cd0ac0f83520e2c0db0e98e2000100000000000030ad61194c5c3c19c0397d3ae98fb25ea4ead720fd49a86f2ab7b6db888ea61b00010000000000005981c0b5df48c066b4b3858ea949990c82cc27e030127d9eda70ff57fe9d9feb0001000000000000ad2fccec444b26794a13fb52f71348308de20f72a6dc4544195cef79f60910660001000000000000c817d2cac077b5ab21af4166f7451d9678a836db3f709b2903a971bf763b7f890001000000000000a4df50c83ed97db449ec856d660f4b0ef1f888bf2824800cf1bcf71418b32e580001000000000000000200a100060417bce6c8000000000000000000000000000000000000000000000000000000000000000000000000007777006b344b45397734746e65417472324257736d6877693645624231436257716779424248326f4367397677676e39346e5a5a4d6379694c7655347a596b6277703277754e4a595651556b77795a46664e3846726238345178556770673174656e574c61647834554552583270480000000000053be744043b00012f4d6a6fd5720be42930533d2efd2f5659f6179ea0e677edad599ef1dc6293b8ae2ebb91eac8ceb937f92c7dd5ffdb577b6506c6fbe0f2c7baf35d399dbc7bab0003fffe01000000000000001581a154c4107e519774e8784192b35a93ef68fff6ee0000"

EXTRA_RAW = "77770005a99c2e0e2b1da4d648755ef19bd95139acbbe6564cfb06dec7cd34931ca72cdc0001c19d51beba90c20ff538a32ab262ce6e32e59f03b5bfe6d8e6fe2b2544ba43b60000000000000000000100a40005e8d4a510000000000000000000000000000000000000000000000000000000000000000000000000000000000000000040cf0926f381bb17668ef4b4eab6243d4b437ae6d2372623b74f41a5597277495556515cbc346d8b639386c1e22239d032bb6f09f8b6f2ea5a3a19b41fe0bdd1de0000"

PM = "77770005a99c2e0e2b1da4d648755ef19bd95139acbbe6564cfb06dec7cd34931ca72cdc00020000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000000001000000000000000200000005e8d4a5100000004fe2a684e0e6c5e370ca0d89f5e2cb0da1e2ecd4028fa2d395fbca4e33f258050003fffe0d000000000005e8d4a51000001041cd5439a3a3caf43b5755facd2856b8eb8dd9c825ddbdc4c2fc283afd25d428d069468da7057e644259c5f82cea4f32b481844aff68409a2823e6a2e7d84ae59402e07b4e453035787231b6b9b5c53498573e22e7f0d1440741c95e4c51b96c81ef7ed772d8f864f4a0250478fbc3c2927b7dd5dc364d6ad49156eccdde902c139921b524d87fafa4e671e6f8d9a9b3bbb405573eef90df4ea9d966c1a81b2d99e4228582ee9001653cfb2d7eb61dfe14d243e0280db8ffe2741a89190f532fbbbbe72344c65127e697a246c5f70804342195b92835afa9d8edf7498ba083e407a579b53eb7ce1ee7e97f826e6b463e7ad160cb97c56b6166d125ffd8b6f021d3f4a6136aaddce4bdbfddae92f702c56ccb94edb2f6d93615887f0806900a65c0f230e2e2ae9358beb7e7299cf8a00bc2fd2038540f818db6e16dd4abf4dadce64dd745fe693b2ee41e4ff1b7fccff3f50819a7d41e76cb04fe1065059f3b2068a5f51863e976f65e7b2665045e3e8919b96cae80cbbbf9d33009094b5091dde31937cf61a9d7393c6d4b01f068725f233eb564bb00767138b1c83bd09cf148832f8e5303a3249cee3c707607eb8ea030c0b92777e3ed729fb2aee4c4298bd6dcd0d1c0eff1a06c68bf6459f35c8a047130b631b22bff252edeb03310cf7f2121f21afb2d299f7febc6a3eaa79e5e19bd3a5c299817b50262289e2bc382f173c6473159e19ed185b373e935081774e0c133b9416abdff319667187a71dff53e0003fffe0d00000000000000000000"

ROUND_RAW = "7777000141fcf8ecefae9071c8e9c779bdad09bd2f27a1edccd4df012e929a71a7cef15e3b4918d62413a03a21a89b486a41017f6b2776a9a72ba2c34605011e110bda1d000000000000007b00000000000001c8000200b75137647312fd194412a1df91fce7c9005743953a373613b08bd8e2827dcc8585f24ace862a82a0f2feb2cab0f893f5f267969ed0d71b4ecb7cb2387e016a"

SELF_REF = bytes.fromhex("b7342ffb374824d69674054486e71bb8b575a4d961b65ffff647a8e1696f579a")
EXTERNAL_REF = bytes.fromhex("0552038ee8ce7c8b0efba019a7c36e86f1b70069553bbb187cfd8e3ca5f14fb1")
TX_HASH = bytes.fromhex("d694818d674f347b36b0efd75332eadfa73723cd0fb6152da778b91baf9719cc")
NODE_ID = bytes.fromhex("d4f5a8351419cfc9b0ba10268f623994c6d6a1640efa904fe848ae697556652a")

EMPTY_PAYLOAD = "77770002000000000000000000000000000000000000000000000000000000000000000000000000000000000002b7342ffb374824d69674054486e71bb8b575a4d961b65ffff647a8e1696f579a0552038ee8ce7c8b0efba019a7c36e86f1b70069553bbb187cfd8e3ca5f14fb10001d694818d674f347b36b0efd75332eadfa73723cd0fb6152da778b91baf9719cc00000000000000000000000000000000"
NODE_PAYLOAD = "77770002d4f5a8351419cfc9b0ba10268f623994c6d6a1640efa904fe848ae697556652a000000000000007b0002b7342ffb374824d69674054486e71bb8b575a4d961b65ffff647a8e1696f579a0552038ee8ce7c8b0efba019a7c36e86f1b70069553bbb187cfd8e3ca5f14fb10001d694818d674f347b36b0efd75332eadfa73723cd0fb6152da778b91baf9719cc17168a60ce8798b10000000000000000"
FULL_SNAPSHOT = "77770002d4f5a8351419cfc9b0ba10268f623994c6d6a1640efa904fe848ae697556652a000000000000007b0002b7342ffb374824d69674054486e71bb8b575a4d961b65ffff647a8e1696f579a0552038ee8ce7c8b0efba019a7c36e86f1b70069553bbb187cfd8e3ca5f14fb10001d694818d674f347b36b0efd75332eadfa73723cd0fb6152da778b91baf9719cc17168a60ce8798b10000000000000001010203040102030401020304010203040102030401020304010203040102030401020304010203040102030401020304010203040102030401020304010203040000000000000159"

MINT_RAW = "777700010000000000000000007b000412b9af98eea889c227076f8c62106b59a478e043c0030392f3be0f5d714ed27953cb2668"
MINT_TX = bytes.fromhex("eea889c227076f8c62106b59a478e043c0030392f3be0f5d714ed27953cb2668")


def _snapshot() -> Snapshot:
    return Snapshot(
        references=RoundLink(self_hash=SELF_REF, external=EXTERNAL_REF),
        transactions=[TX_HASH],
    )


def test_withdrawal_transaction_round_trip():
    raw = bytes.fromhex(WITHDRAWAL_RAW)
    signed = unmarshal_transaction(raw)
    withdrawal = signed.outputs[0].withdrawal
    assert withdrawal is not None
    assert withdrawal.address == (
        "4KE9w4tneAtr2BWsmhwi6EbB1CbWqgyBBH2oCg9vwgn94nZZMcyiLvU4zYkbwp2wuNJYVQUkwyZFfN8Frb84QxUgpg1tenWLadx4UERX2pH"
    )
    assert withdrawal.tag == ""
    assert marshal_transaction(signed).hex() == WITHDRAWAL_RAW
    assert payload_marshal(signed).hex() == WITHDRAWAL_RAW


def test_transaction_extra_decoded():
    signed = unmarshal_transaction(bytes.fromhex(EXTRA_RAW))
    assert signed.extra.hex() == (
        "cf0926f381bb17668ef4b4eab6243d4b437ae6d2372623b74f41a5597277495556515cbc346d8b639386c1e22239d032bb6f09f8b6f2ea5a3a19b41fe0bdd1de"
    )
    assert signed.outputs[0].type == OutputType.NODE_ACCEPT


def test_multi_key_transaction_round_trip():
    raw = bytes.fromhex(PM)
    assert len(raw) == 740
    signed = unmarshal_transaction(raw)
    assert len(signed.inputs) == 2
    assert [inp.index for inp in signed.inputs] == [0, 1]
    assert len(signed.outputs[1].keys) == 16
    assert str(signed.outputs[1].script) == "fffe0d"
    assert marshal_transaction(signed).hex() == PM


def test_payload_marshal_drops_signatures():
    signed = unmarshal_transaction(bytes.fromhex(PM))
    signed.signatures_map = [{0: bytes(range(64))}, {0: bytes(64), 1: bytes(64)}]
    full = marshal_transaction(signed)
    assert len(full) > 740
    assert payload_marshal(signed).hex() == PM
    assert unmarshal_transaction(full).signatures_map == signed.signatures_map


def test_transaction_rejects_old_version():
    with pytest.raises(ValueError):
        marshal_transaction(SignedTransaction(version=4))


def test_transaction_rejects_trailing_byte():
    with pytest.raises(DecodeError):
        unmarshal_transaction(bytes.fromhex(EXTRA_RAW) + b"\x00")


def test_round_marshal():
    raw = bytes.fromhex(ROUND_RAW)
    round_ = Round(
        hash=raw[4:36],
        node_id=raw[36:68],
        number=123,
        timestamp=456,
        references=RoundLink(self_hash=raw[86:118], external=raw[118:150]),
    )
    assert marshal_round(round_).hex() == ROUND_RAW

    decoded = unmarshal_round(raw)
    assert decoded.hash.hex() == "41fcf8ecefae9071c8e9c779bdad09bd2f27a1edccd4df012e929a71a7cef15e"
    assert decoded.number == 123
    assert decoded.timestamp == 456
    assert decoded == round_


def test_round_without_references():
    round_ = Round(hash=b"\x01" * 32, node_id=b"\x02" * 32, number=7, timestamp=9)
    decoded = unmarshal_round(marshal_round(round_))
    assert decoded.references is None
    assert decoded == round_


def test_round_errors():
    with pytest.raises(DecodeError):
        unmarshal_round(b"short")
    with pytest.raises(DecodeError):
        unmarshal_round(b"\x77\x77\x00\x02" + bytes(80))


def test_mint_distribution_encoding():
    dist = MintDistribution(
        group=MINT_GROUP_UNIVERSAL,
        batch=123,
        amount=Integer.from_string("3.14159"),
        transaction=MINT_TX,
    )
    assert marshal_mint_distribution(dist).hex() == MINT_RAW
    assert marshal_mint_distribution(dist).hex() == MINT_RAW

    res = unmarshal_mint_distribution(bytes.fromhex(MINT_RAW))
    assert res.group == MINT_GROUP_UNIVERSAL
    assert res.batch == 123
    assert str(res.amount) == "3.14159000"
    assert res.transaction.hex() == MINT_TX.hex()


def test_mint_distribution_errors():
    with pytest.raises(ValueError):
        marshal_mint_distribution(MintDistribution(group="OTHER", transaction=MINT_TX))
    bad_group = bytes.fromhex("77770001" + "0001" + MINT_RAW[12:])
    with pytest.raises(DecodeError):
        unmarshal_mint_distribution(bad_group)
    with pytest.raises(DecodeError):
        unmarshal_mint_distribution(bytes(10))


def test_utxo_round_trip():
    utxo = UTXOWithLock(
        input=Input(hash=b"\x11" * 32, index=3),
        output=Output(
            type=OutputType.SCRIPT,
            amount=Integer.from_whole(20000),
            keys=[b"\x22" * 32, b"\x33" * 32],
            mask=b"\x44" * 32,
            script=Script.threshold(2),
        ),
        asset=b"\x55" * 32,
        lock_hash=b"\x66" * 32,
    )
    raw = marshal_utxo(utxo)
    assert raw[:4].hex() == "77770001"
    decoded = unmarshal_utxo(raw)
    assert decoded == utxo
    assert str(decoded.output.amount) == "20000.00000000"
    assert str(decoded.output.script) == "fffe02"


def test_utxo_truncated():
    utxo = UTXOWithLock(asset=b"\x55" * 32)
    raw = marshal_utxo(utxo)
    with pytest.raises(DecodeError):
        unmarshal_utxo(raw[:-5])


def test_snapshot_payload_empty_node():
    snapshot = _snapshot()
    payload = snapshot_payload(snapshot)
    assert len(payload) == 160
    assert payload.hex() == EMPTY_PAYLOAD

    decoded = unmarshal_snapshot(payload)
    assert snapshot_payload(decoded.snapshot).hex() == EMPTY_PAYLOAD
    assert decoded.snapshot.references.self_hash == SELF_REF
    assert decoded.snapshot.references.external == EXTERNAL_REF
    assert decoded.snapshot.transactions[0] == TX_HASH
    assert decoded.topological_order == 0


def test_snapshot_payload_ignores_signature():
    snapshot = _snapshot()
    snapshot.node_id = NODE_ID
    snapshot.round_number = 123
    snapshot.timestamp = 1663669260746463409
    assert snapshot_payload(snapshot).hex() == NODE_PAYLOAD

    snapshot.signature = CosiSignature(mask=1, signature=bytes([1, 2, 3, 4]) * 16)
    payload = snapshot_payload(snapshot)
    assert len(payload) == 160
    assert payload.hex() == NODE_PAYLOAD

    decoded = unmarshal_snapshot(payload).snapshot
    assert decoded.signature is None
    assert decoded.node_id == NODE_ID
    assert decoded.round_number == 123
    assert decoded.timestamp == 1663669260746463409


def test_snapshot_full_marshal():
    snapshot = _snapshot()
    snapshot.node_id = NODE_ID
    snapshot.round_number = 123
    snapshot.timestamp = 1663669260746463409
    snapshot.signature = CosiSignature(mask=1, signature=bytes([1, 2, 3, 4]) * 16)
    topo = SnapshotWithTopologicalOrder(snapshot=snapshot, topological_order=345)

    raw = marshal_snapshot(topo)
    assert len(raw) == 232
    assert raw.hex() == FULL_SNAPSHOT

    decoded = unmarshal_snapshot(raw)
    assert marshal_snapshot(decoded).hex() == FULL_SNAPSHOT
    assert snapshot_payload(decoded.snapshot).hex() == NODE_PAYLOAD
    assert decoded.snapshot.signature.mask == 1
    assert decoded.snapshot.signature.signature == bytes([1, 2, 3, 4]) * 16
    assert decoded.snapshot.transactions[0] == TX_HASH
    assert decoded.topological_order == 345


def test_snapshot_errors():
    with pytest.raises(DecodeError):
        unmarshal_snapshot(bytes.fromhex(EXTRA_RAW))
    bad = _snapshot()
    bad.version = 1
    with pytest.raises(ValueError):
        snapshot_payload(bad)
    with pytest.raises(ValueError):
        marshal_snapshot(SnapshotWithTopologicalOrder(snapshot=bad))
    with pytest.raises(DecodeError):
        unmarshal_snapshot(bytes.fromhex(FULL_SNAPSHOT) + b"\x00")