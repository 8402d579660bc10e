"""Ledger data model: transactions, their inputs and outputs, snapshots and rounds."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from xinledger.asset import Asset
from xinledger.integer import ZERO, Integer
from xinledger.script import Script

HASH_SIZE = 32
KEY_SIZE = 32
SIGNATURE_SIZE = 64

ZERO_HASH = bytes(HASH_SIZE)
ZERO_KEY = bytes(KEY_SIZE)
ZERO_SIGNATURE = bytes(SIGNATURE_SIZE)

TX_VERSION_HASH_SIGNATURE = 0x05
SNAPSHOT_VERSION_COMMON_ENCODING = 2

EXTRA_SIZE_GENERAL_LIMIT = 256
EXTRA_SIZE_STORAGE_STEP = 1024
EXTRA_SIZE_STORAGE_CAPACITY = 1024 * 1024 * 4
EXTRA_STORAGE_PRICE_STEP = "0.0001"
SLICE_COUNT_LIMIT = 256
REFERENCES_COUNT_LIMIT = 16

MINT_GROUP_UNIVERSAL = "UNIVERSAL"


class OutputType(IntEnum):
    SCRIPT = 0x00
    WITHDRAWAL_SUBMIT = 0xA1
    NODE_PLEDGE = 0xA3
    NODE_ACCEPT = 0xA4
    NODE_RESIGN = 0xA5
    NODE_REMOVE = 0xA6
    WITHDRAWAL_CLAIM = 0xA9
    NODE_CANCEL = 0xAA
    CUSTODIAN_UPDATE_NODES = 0xB1
    CUSTODIAN_SLASH_NODES = 0xB2


class TransactionType(IntEnum):
    SCRIPT = 0x00
    MINT = 0x01
    DEPOSIT = 0x02
    WITHDRAWAL_SUBMIT = 0x03
    WITHDRAWAL_CLAIM = 0x05
    NODE_PLEDGE = 0x06
    NODE_ACCEPT = 0x07
    NODE_RESIGN = 0x08
    NODE_REMOVE = 0x09
    NODE_CANCEL = 0x12
    CUSTODIAN_UPDATE_NODES = 0x13
    CUSTODIAN_SLASH_NODES = 0x14
    UNKNOWN = 0xFF


_OUTPUT_TRANSACTION_TYPES = {
    OutputType.WITHDRAWAL_SUBMIT: TransactionType.WITHDRAWAL_SUBMIT,
    OutputType.WITHDRAWAL_CLAIM: TransactionType.WITHDRAWAL_CLAIM,
    OutputType.NODE_PLEDGE: TransactionType.NODE_PLEDGE,
    OutputType.NODE_CANCEL: TransactionType.NODE_CANCEL,
    OutputType.NODE_ACCEPT: TransactionType.NODE_ACCEPT,
    OutputType.NODE_REMOVE: TransactionType.NODE_REMOVE,
    OutputType.CUSTODIAN_UPDATE_NODES: TransactionType.CUSTODIAN_UPDATE_NODES,
    OutputType.CUSTODIAN_SLASH_NODES: TransactionType.CUSTODIAN_SLASH_NODES,
}


@dataclass
class DepositData:
    """A deposit observed on an external chain."""

    chain: bytes = ZERO_HASH
    asset_key: str = ""
    transaction: str = ""
    index: int = 0
    amount: Integer = ZERO

    def asset(self) -> Asset:
        return Asset(chain=self.chain, asset_key=self.asset_key)


@dataclass
class MintData:
    """A mint batch for a mint group."""

    group: str = ""
    batch: int = 0
    amount: Integer = ZERO

    def distribute(self, tx: bytes) -> MintDistribution:
        """Record this mint as distributed by transaction ``tx``."""
        return MintDistribution(
            group=self.group, batch=self.batch, amount=self.amount, transaction=bytes(tx)
        )


@dataclass
class MintDistribution(MintData):
    """A mint batch together with the transaction that distributed it."""

    transaction: bytes = ZERO_HASH


@dataclass
class WithdrawalData:
    address: str = ""
    tag: str = ""


@dataclass
class Input:
    """A transaction input: a previous output, genesis data, a deposit or a mint."""

    hash: bytes = ZERO_HASH
    index: int = 0
    genesis: bytes | None = None
    deposit: DepositData | None = None
    mint: MintData | None = None


@dataclass
class Output:
    type: int = OutputType.SCRIPT
    amount: Integer = ZERO
    keys: list[bytes] = field(default_factory=list)
    mask: bytes = ZERO_KEY
    script: Script = field(default_factory=Script)
    withdrawal: WithdrawalData | None = None


@dataclass
class AggregatedSignature:
    signers: list[int] = field(default_factory=list)
    signature: bytes = ZERO_SIGNATURE


@dataclass
class CosiSignature:
    """A collective signature with the bit mask of its signers."""

    mask: int = 0
    signature: bytes = ZERO_SIGNATURE


@dataclass
class Transaction:
    version: int = TX_VERSION_HASH_SIGNATURE
    asset: bytes = ZERO_HASH
    inputs: list[Input] = field(default_factory=list)
    outputs: list[Output] = field(default_factory=list)
    references: list[bytes] = field(default_factory=list)
    extra: bytes = b""

    def add_input(self, hash: bytes, index: int) -> None:
        self.inputs.append(Input(hash=bytes(hash), index=index))

    def add_deposit_input(self, data: DepositData) -> None:
        self.inputs.append(Input(deposit=data))

    def add_universal_mint_input(self, batch: int, amount: Integer) -> None:
        self.inputs.append(
            Input(mint=MintData(group=MINT_GROUP_UNIVERSAL, batch=batch, amount=amount))
        )

    def deposit_data(self) -> DepositData | None:
        """The deposit of a single-input transaction, if it has one."""
        if len(self.inputs) != 1:
            return None
        return self.inputs[0].deposit

    def _check_version(self) -> None:
        if self.version < TX_VERSION_HASH_SIGNATURE:
            raise ValueError(f"invalid transaction version {self.version}")

    def signed(self) -> SignedTransaction:
        """A signable copy of this transaction, without signatures."""
        self._check_version()
        return SignedTransaction(
            version=self.version,
            asset=self.asset,
            inputs=list(self.inputs),
            outputs=list(self.outputs),
            references=list(self.references),
            extra=self.extra,
        )


@dataclass
class SignedTransaction(Transaction):
    aggregated_signature: AggregatedSignature | None = None
    signatures_map: list[dict[int, bytes]] = field(default_factory=list)

    def signed(self) -> SignedTransaction:
        """A copy of this transaction keeping its signatures."""
        self._check_version()
        copy = super().signed()
        copy.aggregated_signature = self.aggregated_signature
        copy.signatures_map = list(self.signatures_map)
        return copy

    def transaction_type(self) -> TransactionType:
        for inp in self.inputs:
            if inp.mint is not None:
                return TransactionType.MINT
            if inp.deposit is not None:
                return TransactionType.DEPOSIT
            if inp.genesis is not None:
                return TransactionType.UNKNOWN

        is_script = True
        for out in self.outputs:
            kind = _OUTPUT_TRANSACTION_TYPES.get(out.type)
            if kind is not None:
                return kind
            is_script = is_script and out.type == OutputType.SCRIPT

        return TransactionType.SCRIPT if is_script else TransactionType.UNKNOWN


@dataclass
class RoundLink:
    self_hash: bytes = ZERO_HASH
    external: bytes = ZERO_HASH

    def copy(self) -> RoundLink:
        return RoundLink(self_hash=self.self_hash, external=self.external)


@dataclass
class Round:
    hash: bytes = ZERO_HASH
    node_id: bytes = ZERO_HASH
    number: int = 0
    timestamp: int = 0
    references: RoundLink | None = None


@dataclass
class Snapshot:
    version: int = SNAPSHOT_VERSION_COMMON_ENCODING
    node_id: bytes = ZERO_HASH
    references: RoundLink | None = None
    round_number: int = 0
    timestamp: int = 0
    signature: CosiSignature | None = None
    hash: bytes = ZERO_HASH
    transactions: list[bytes] = field(default_factory=list)

    def _check_version(self) -> None:
        if self.version < SNAPSHOT_VERSION_COMMON_ENCODING:
            raise ValueError(f"invalid snapshot version {self.version}")

    def sole_transaction(self) -> bytes:
        self._check_version()
        if len(self.transactions) != 1:
            raise ValueError(f"invalid snapshot transactions count {len(self.transactions)}")
        return self.transactions[0]

    def add_sole_transaction(self, tx: bytes) -> None:
        self._check_version()
        if self.transactions:
            raise ValueError(f"snapshot already has transaction {self.transactions[0].hex()}")
        self.transactions = [bytes(tx)]


@dataclass
class SnapshotWithTopologicalOrder:
    snapshot: Snapshot = field(default_factory=Snapshot)
    topological_order: int = 0


@dataclass
class UTXO:
    input: Input = field(default_factory=Input)
    output: Output = field(default_factory=Output)
    asset: bytes = ZERO_HASH


@dataclass
class UTXOWithLock(UTXO):
    lock_hash: bytes = ZERO_HASH


@dataclass
class RoundSpace:
    node_id: bytes = ZERO_HASH
    batch: int = 0
    round: int = 0
    duration: int = 0


def new_transaction(asset: bytes) -> Transaction:
    """An empty transaction of the current version for ``asset``."""
    return Transaction(version=TX_VERSION_HASH_SIGNATURE, asset=bytes(asset))