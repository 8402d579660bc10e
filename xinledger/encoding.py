"""Binary encoding and decoding of transactions, snapshots and their parts."""

from __future__ import annotations

import struct
from collections.abc import Iterable, Mapping

from xinledger.integer import Integer
from xinledger.model import (
    EXTRA_SIZE_STORAGE_CAPACITY,
    HASH_SIZE,
    KEY_SIZE,
    SIGNATURE_SIZE,
    SNAPSHOT_VERSION_COMMON_ENCODING,
    TX_VERSION_HASH_SIGNATURE,
    AggregatedSignature,
    CosiSignature,
    DepositData,
    Input,
    MintData,
    Output,
    RoundLink,
    SignedTransaction,
    Snapshot,
    SnapshotWithTopologicalOrder,
    WithdrawalData,
)
from xinledger.script import Script

MINIMUM_ENCODING_VERSION = 0x1
MAXIMUM_ENCODING_INT = 0xFFFF

AGGREGATED_SIGNATURE_PREFIX = 0xFF01
AGGREGATED_SIGNATURE_SPARSE_MASK = 0x01
AGGREGATED_SIGNATURE_ORDINARY_MASK = 0x00

MAGIC = b"\x77\x77"
NULL = b"\x00\x00"

_MAX_INPUT_INDEX = 1024
_TX_VERSIONS = (TX_VERSION_HASH_SIGNATURE,)
_SNAPSHOT_VERSIONS = (SNAPSHOT_VERSION_COMMON_ENCODING,)


class DecodeError(ValueError):
    """Encoded data is malformed or truncated."""


class _EndOfData(DecodeError):
    """Nothing is left to read."""


def _known_version(prefix: bytes, versions: Iterable[int]) -> int:
    if len(prefix) < 4:
        return 0
    for version in versions:
        if prefix[:4] == MAGIC + bytes((0, version)):
            return version
    return 0


def _fixed(value: bytes, size: int, what: str) -> bytes:
    data = bytes(value)
    if len(data) != size:
        raise ValueError(f"invalid {what} size {len(data)}")
    return data


def _text(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="surrogateescape")


def _raw(text: str) -> bytes:
    return text.encode("utf-8", errors="surrogateescape")


class Encoder:
    """Accumulates the canonical big-endian encoding of ledger data."""

    def __init__(self) -> None:
        self._buf = bytearray()

    @classmethod
    def minimum(cls) -> Encoder:
        """An encoder primed with the minimum encoding version header."""
        enc = cls()
        enc.write(MAGIC)
        enc.write(bytes((0x00, MINIMUM_ENCODING_VERSION)))
        return enc

    def data(self) -> bytes:
        return bytes(self._buf)

    def write(self, data: bytes) -> None:
        self._buf += data

    def write_byte(self, value: int) -> None:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"invalid byte {value}")
        self._buf.append(value)

    def write_int(self, value: int) -> None:
        if not 0 <= value <= MAXIMUM_ENCODING_INT:
            raise ValueError(f"invalid int {value}")
        self._buf += struct.pack(">H", value)

    def write_uint16(self, value: int) -> None:
        self.write_int(value)

    def write_uint32(self, value: int) -> None:
        if not 0 <= value < 1 << 32:
            raise ValueError(f"invalid uint32 {value}")
        self._buf += struct.pack(">I", value)

    def write_uint64(self, value: int) -> None:
        if not 0 <= value < 1 << 64:
            raise ValueError(f"invalid uint64 {value}")
        self._buf += struct.pack(">Q", value)

    def write_integer(self, value: Integer) -> None:
        raw = value.value.to_bytes((value.value.bit_length() + 7) // 8, "big")
        self.write_int(len(raw))
        self.write(raw)

    def _write_field(self, data: bytes) -> None:
        self.write_int(len(data))
        self.write(data)

    def encode_input(self, inp: Input) -> None:
        if inp.index > _MAX_INPUT_INDEX:
            raise ValueError(f"invalid input index {inp.index}")
        self.write(_fixed(inp.hash, HASH_SIZE, "input hash"))
        self.write_uint16(inp.index)
        self._write_field(bytes(inp.genesis or b""))

        deposit = inp.deposit
        if deposit is None:
            self.write(NULL)
        else:
            self.write(MAGIC)
            self.write(_fixed(deposit.chain, HASH_SIZE, "deposit chain"))
            self._write_field(_raw(deposit.asset_key))
            self._write_field(_raw(deposit.transaction))
            self.write_uint64(deposit.index)
            self.write_integer(deposit.amount)

        mint = inp.mint
        if mint is None:
            self.write(NULL)
        else:
            self.write(MAGIC)
            self._write_field(_raw(mint.group))
            self.write_uint64(mint.batch)
            self.write_integer(mint.amount)

    def encode_output(self, out: Output) -> None:
        self.write(bytes((0x00, int(out.type))))
        self.write_integer(out.amount)
        self.write_int(len(out.keys))
        for key in out.keys:
            self.write(_fixed(key, KEY_SIZE, "output key"))
        self.write(_fixed(out.mask, KEY_SIZE, "output mask"))
        self._write_field(bytes(out.script))

        withdrawal = out.withdrawal
        if withdrawal is None:
            self.write(NULL)
        else:
            self.write(MAGIC)
            self._write_field(_raw(withdrawal.address))
            self._write_field(_raw(withdrawal.tag))

    def encode_signatures(self, sigs: Mapping[int, bytes]) -> None:
        """Encode one input's signatures, ordered by key index."""
        self.write_int(len(sigs))
        for index, sig in sorted(sigs.items()):
            self.write_uint16(index)
            self.write(_fixed(sig, SIGNATURE_SIZE, "signature"))

    def encode_round_references(self, link: RoundLink | None) -> None:
        if link is None:
            self.write_int(0)
            return
        self.write_int(2)
        self.write(_fixed(link.self_hash, HASH_SIZE, "round self reference"))
        self.write(_fixed(link.external, HASH_SIZE, "round external reference"))

    def encode_cosi_signature(self, sig: CosiSignature | None) -> None:
        if sig is None:
            self.write_uint64(0)
            return
        if sig.mask == 0:
            raise ValueError("cosi signature without signers")
        self.write_uint64(sig.mask)
        self.write(_fixed(sig.signature, SIGNATURE_SIZE, "cosi signature"))

    def encode_aggregated_signature(self, sig: AggregatedSignature) -> None:
        self.write_int(MAXIMUM_ENCODING_INT)
        self.write_int(AGGREGATED_SIGNATURE_PREFIX)
        self.write(_fixed(sig.signature, SIGNATURE_SIZE, "aggregated signature"))
        signers = sig.signers
        if not signers:
            self.write_byte(AGGREGATED_SIGNATURE_ORDINARY_MASK)
            self.write_int(0)
            return
        previous = -1
        for m in signers:
            if m <= previous or m > MAXIMUM_ENCODING_INT:
                raise ValueError(f"invalid aggregated signers {signers}")
            previous = m

        highest = signers[-1]
        if highest // 8 + 1 > len(signers) * 2:
            self.write_byte(AGGREGATED_SIGNATURE_SPARSE_MASK)
            self.write_int(len(signers))
            for m in signers:
                self.write_int(m)
            return

        masks = bytearray(highest // 8 + 1)
        for m in signers:
            masks[m // 8] ^= 1 << (m % 8)
        self.write_byte(AGGREGATED_SIGNATURE_ORDINARY_MASK)
        self._write_field(bytes(masks))

    def encode_transaction(self, signed: SignedTransaction) -> bytes:
        if signed.version < TX_VERSION_HASH_SIGNATURE:
            raise ValueError(f"invalid transaction version {signed.version}")
        self.write(MAGIC)
        self.write(bytes((0x00, signed.version)))
        self.write(_fixed(signed.asset, HASH_SIZE, "asset"))

        self.write_int(len(signed.inputs))
        for inp in signed.inputs:
            self.encode_input(inp)

        self.write_int(len(signed.outputs))
        for out in signed.outputs:
            self.encode_output(out)

        self.write_int(len(signed.references))
        for ref in signed.references:
            self.write(_fixed(ref, HASH_SIZE, "reference"))

        extra = bytes(signed.extra or b"")
        if len(extra) > EXTRA_SIZE_STORAGE_CAPACITY:
            raise ValueError(f"extra too large {len(extra)}")
        self.write_uint32(len(extra))
        self.write(extra)

        if signed.aggregated_signature is not None:
            self.encode_aggregated_signature(signed.aggregated_signature)
        else:
            count = len(signed.signatures_map)
            if count == MAXIMUM_ENCODING_INT:
                raise ValueError(f"too many signature maps {count}")
            self.write_int(count)
            for sigs in signed.signatures_map:
                self.encode_signatures(sigs)
        return self.data()

    def _encode_snapshot(self, snapshot: Snapshot, with_signature: bool) -> None:
        if snapshot.version < SNAPSHOT_VERSION_COMMON_ENCODING:
            raise ValueError(f"invalid snapshot version {snapshot.version}")
        if len(snapshot.transactions) != 1:
            raise ValueError(f"invalid snapshot transactions count {len(snapshot.transactions)}")
        if not with_signature and snapshot.signature is not None:
            raise ValueError("snapshot payload must not carry a signature")

        self.write(MAGIC)
        self.write(bytes((0x00, snapshot.version)))
        self.write(_fixed(snapshot.node_id, HASH_SIZE, "node id"))
        self.write_uint64(snapshot.round_number)
        self.encode_round_references(snapshot.references)
        self.write_int(len(snapshot.transactions))
        for tx in sorted(bytes(t) for t in snapshot.transactions):
            self.write(_fixed(tx, HASH_SIZE, "transaction hash"))
        self.write_uint64(snapshot.timestamp)
        self.encode_cosi_signature(snapshot.signature)

    def encode_snapshot_payload(self, snapshot: Snapshot) -> bytes:
        self._encode_snapshot(snapshot, with_signature=False)
        return self.data()

    def encode_snapshot_with_topo(self, topo: SnapshotWithTopologicalOrder) -> bytes:
        self._encode_snapshot(topo.snapshot, with_signature=True)
        self.write_uint64(topo.topological_order)
        return self.data()


class Decoder:
    """Reads ledger data back from its canonical encoding."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @classmethod
    def minimum(cls, data: bytes) -> Decoder:
        """A decoder past the minimum encoding version header of ``data``."""
        data = bytes(data)
        if len(data) < 4 or data[:4] != MAGIC + bytes((0, MINIMUM_ENCODING_VERSION)):
            raise DecodeError(f"invalid encoding version {data.hex()}")
        return cls(data[4:])

    def _at_end(self) -> bool:
        return self._pos >= len(self._data)

    def read(self, size: int) -> bytes:
        if self._at_end():
            raise _EndOfData("unexpected end of data")
        chunk = self._data[self._pos : self._pos + size]
        self._pos += len(chunk)
        if len(chunk) != size:
            raise DecodeError(f"data short {len(chunk)} {size}")
        return chunk

    def read_byte(self) -> int:
        return self.read(1)[0]

    def read_int(self) -> int:
        return self.read_uint16()

    def read_uint16(self) -> int:
        return struct.unpack(">H", self.read(2))[0]

    def read_uint32(self) -> int:
        return struct.unpack(">I", self.read(4))[0]

    def read_uint64(self) -> int:
        return struct.unpack(">Q", self.read(8))[0]

    def read_integer(self) -> Integer:
        size = self.read_int()
        return Integer(int.from_bytes(self.read(size), "big"))

    def read_bytes(self) -> bytes | None:
        """A length-prefixed byte string, or None when it is empty."""
        size = self.read_int()
        if size == 0:
            return None
        return self.read(size)

    def read_magic(self) -> bool:
        """Whether the next optional section is present."""
        marker = self.read(2)
        if marker == MAGIC:
            return True
        if marker == NULL:
            return False
        raise DecodeError(f"malformed {list(marker)}")

    def read_input(self) -> Input:
        inp = Input(hash=self.read(HASH_SIZE), index=self.read_uint16())
        inp.genesis = self.read_bytes()

        if self.read_magic():
            inp.deposit = DepositData(
                chain=self.read(HASH_SIZE),
                asset_key=_text(self.read_bytes()),
                transaction=_text(self.read_bytes()),
                index=self.read_uint64(),
                amount=self.read_integer(),
            )

        if self.read_magic():
            inp.mint = MintData(
                group=_text(self.read_bytes()),
                batch=self.read_uint64(),
                amount=self.read_integer(),
            )
        return inp

    def read_output(self) -> Output:
        kind = self.read(2)
        if kind[0] != 0:
            raise DecodeError(f"invalid output type {list(kind)}")
        out = Output(type=kind[1], amount=self.read_integer())
        out.keys = [self.read(KEY_SIZE) for _ in range(self.read_int())]
        out.mask = self.read(KEY_SIZE)
        out.script = Script(self.read_bytes() or b"")
        if self.read_magic():
            out.withdrawal = WithdrawalData(
                address=_text(self.read_bytes()), tag=_text(self.read_bytes())
            )
        return out

    def read_signatures(self) -> dict[int, bytes]:
        count = self.read_int()
        sigs: dict[int, bytes] = {}
        for _ in range(count):
            index = self.read_uint16()
            sigs[index] = self.read(SIGNATURE_SIZE)
        if len(sigs) != count:
            raise DecodeError(f"signatures count {count} {sorted(sigs)}")
        return sigs

    def read_round_references(self) -> RoundLink | None:
        count = self.read_int()
        if count == 0:
            return None
        if count != 2:
            raise DecodeError(f"invalid references count {count}")
        return RoundLink(self_hash=self.read(HASH_SIZE), external=self.read(HASH_SIZE))

    def read_cosi_signature(self) -> CosiSignature | None:
        mask = self.read_uint64()
        if mask == 0:
            return None
        return CosiSignature(mask=mask, signature=self.read(SIGNATURE_SIZE))

    def read_aggregated_signature(self) -> AggregatedSignature:
        sig = AggregatedSignature(signature=self.read(SIGNATURE_SIZE))
        kind = self.read_byte()
        if kind == AGGREGATED_SIGNATURE_SPARSE_MASK:
            sig.signers = [self.read_int() for _ in range(self.read_int())]
        elif kind == AGGREGATED_SIGNATURE_ORDINARY_MASK:
            masks = self.read_bytes() or b""
            sig.signers = [
                i * 8 + j for i, byte in enumerate(masks) for j in range(8) if byte & (1 << j)
            ]
        else:
            raise DecodeError(f"invalid mask type {kind}")
        return sig

    def _expect_end(self) -> None:
        if not self._at_end():
            raise DecodeError(f"unexpected ending {self._data[self._pos]}")

    def decode_transaction(self) -> SignedTransaction:
        prefix = self.read(4)
        version = _known_version(prefix, _TX_VERSIONS)
        if version < TX_VERSION_HASH_SIGNATURE:
            raise DecodeError(f"invalid version {list(prefix)}")

        tx = SignedTransaction(version=version, asset=self.read(HASH_SIZE))
        tx.inputs = [self.read_input() for _ in range(self.read_int())]
        tx.outputs = [self.read_output() for _ in range(self.read_int())]
        tx.references = [self.read(HASH_SIZE) for _ in range(self.read_int())]

        extra_size = self.read_uint32()
        if extra_size > 0:
            tx.extra = self.read(extra_size)

        count = self.read_int()
        if count == MAXIMUM_ENCODING_INT:
            prefix_marker = self.read_int()
            if prefix_marker != AGGREGATED_SIGNATURE_PREFIX:
                raise DecodeError(f"invalid prefix {prefix_marker}")
            tx.aggregated_signature = self.read_aggregated_signature()
        else:
            tx.signatures_map = [self.read_signatures() for _ in range(count)]

        self._expect_end()
        return tx

    def decode_snapshot_with_topo(self) -> SnapshotWithTopologicalOrder:
        prefix = self.read(4)
        version = _known_version(prefix, _SNAPSHOT_VERSIONS)
        if version < SNAPSHOT_VERSION_COMMON_ENCODING:
            raise DecodeError(f"invalid version {list(prefix)}")

        snapshot = Snapshot(version=version, node_id=self.read(HASH_SIZE))
        snapshot.round_number = self.read_uint64()
        snapshot.references = self.read_round_references()

        count = self.read_int()
        if count != 1:
            raise DecodeError(f"invalid transactions count {count}")
        snapshot.transactions = [self.read(HASH_SIZE) for _ in range(count)]
        snapshot.timestamp = self.read_uint64()
        snapshot.signature = self.read_cosi_signature()

        topo = SnapshotWithTopologicalOrder(snapshot=snapshot)
        try:
            topo.topological_order = self.read_uint64()
        except _EndOfData:
            return topo
        except DecodeError:
            topo.topological_order = 0

        self._expect_end()
        return topo