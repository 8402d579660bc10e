"""Whole-record serialization: transactions, rounds, mint distributions, UTXOs and snapshots."""

from __future__ import annotations

from xinledger.encoding import (
    MAGIC,
    DecodeError,
    Decoder,
    Encoder,
)
from xinledger.model import (
    HASH_SIZE,
    MINT_GROUP_UNIVERSAL,
    SNAPSHOT_VERSION_COMMON_ENCODING,
    TX_VERSION_HASH_SIGNATURE,
    MintDistribution,
    Round,
    SignedTransaction,
    Snapshot,
    SnapshotWithTopologicalOrder,
    UTXOWithLock,
)

_MINIMUM_RECORD_SIZE = 16
_MINT_GROUP_CODES = {MINT_GROUP_UNIVERSAL: 0x0}
_MINT_GROUP_NAMES = {code: name for name, code in _MINT_GROUP_CODES.items()}


def _check_tx_version(signed: SignedTransaction) -> None:
    if signed.version != TX_VERSION_HASH_SIGNATURE:
        raise ValueError(f"invalid transaction version {signed.version}")


def _check_record_size(data: bytes, what: str) -> None:
    if len(data) < _MINIMUM_RECORD_SIZE:
        raise DecodeError(f"invalid {what} size {len(data)}")


def marshal_transaction(signed: SignedTransaction) -> bytes:
    """The full encoding of a transaction, signatures included."""
    _check_tx_version(signed)
    return Encoder().encode_transaction(signed)


def payload_marshal(signed: SignedTransaction) -> bytes:
    """The encoding of a transaction without any of its signatures."""
    _check_tx_version(signed)
    unsigned = SignedTransaction(
        version=signed.version,
        asset=signed.asset,
        inputs=list(signed.inputs),
        outputs=list(signed.outputs),
        references=list(signed.references),
        extra=signed.extra,
    )
    return Encoder().encode_transaction(unsigned)


def unmarshal_transaction(data: bytes) -> SignedTransaction:
    """Decode a transaction from its full encoding."""
    return Decoder(data).decode_transaction()


def marshal_round(round: Round) -> bytes:
    enc = Encoder.minimum()
    enc.write(bytes(round.hash))
    enc.write(bytes(round.node_id))
    enc.write_uint64(round.number)
    enc.write_uint64(round.timestamp)
    enc.encode_round_references(round.references)
    return enc.data()


def unmarshal_round(data: bytes) -> Round:
    data = bytes(data)
    _check_record_size(data, "round")
    dec = Decoder.minimum(data)
    return Round(
        hash=dec.read(HASH_SIZE),
        node_id=dec.read(HASH_SIZE),
        number=dec.read_uint64(),
        timestamp=dec.read_uint64(),
        references=dec.read_round_references(),
    )


def marshal_mint_distribution(dist: MintDistribution) -> bytes:
    code = _MINT_GROUP_CODES.get(dist.group)
    if code is None:
        raise ValueError(f"invalid mint group {dist.group}")
    enc = Encoder.minimum()
    enc.write_uint16(code)
    enc.write_uint64(dist.batch)
    enc.write_integer(dist.amount)
    enc.write(bytes(dist.transaction))
    return enc.data()


def unmarshal_mint_distribution(data: bytes) -> MintDistribution:
    data = bytes(data)
    _check_record_size(data, "mint distribution")
    dec = Decoder.minimum(data)
    code = dec.read_uint16()
    group = _MINT_GROUP_NAMES.get(code)
    if group is None:
        raise DecodeError(f"invalid mint distribution group {code}")
    return MintDistribution(
        group=group,
        batch=dec.read_uint64(),
        amount=dec.read_integer(),
        transaction=dec.read(HASH_SIZE),
    )


def marshal_utxo(utxo: UTXOWithLock) -> bytes:
    enc = Encoder.minimum()
    enc.write(bytes(utxo.asset))
    enc.encode_input(utxo.input)
    enc.encode_output(utxo.output)
    enc.write(bytes(utxo.lock_hash))
    return enc.data()


def unmarshal_utxo(data: bytes) -> UTXOWithLock:
    data = bytes(data)
    _check_record_size(data, "UTXO")
    dec = Decoder.minimum(data)
    asset = dec.read(HASH_SIZE)
    inp = dec.read_input()
    out = dec.read_output()
    lock_hash = dec.read(HASH_SIZE)
    return UTXOWithLock(input=inp, output=out, asset=asset, lock_hash=lock_hash)


def snapshot_payload(snapshot: Snapshot) -> bytes:
    """The signed part of a snapshot: everything but its signature."""
    if snapshot.version != SNAPSHOT_VERSION_COMMON_ENCODING:
        raise ValueError(f"invalid snapshot version {snapshot.version}")
    payload = Snapshot(
        version=snapshot.version,
        node_id=snapshot.node_id,
        round_number=snapshot.round_number,
        references=snapshot.references,
        transactions=list(snapshot.transactions),
        timestamp=snapshot.timestamp,
    )
    return Encoder().encode_snapshot_payload(payload)


def marshal_snapshot(topo: SnapshotWithTopologicalOrder) -> bytes:
    """The full encoding of a snapshot with its signature and topological order."""
    if topo.snapshot.version != SNAPSHOT_VERSION_COMMON_ENCODING:
        raise ValueError(f"invalid snapshot version {topo.snapshot.version}")
    return Encoder().encode_snapshot_with_topo(topo)


def unmarshal_snapshot(data: bytes) -> SnapshotWithTopologicalOrder:
    data = bytes(data)
    if data[:4] != MAGIC + bytes((0, SNAPSHOT_VERSION_COMMON_ENCODING)):
        raise DecodeError(f"invalid snapshot version {data[:4].hex()}")
    return Decoder(data).decode_snapshot_with_topo()