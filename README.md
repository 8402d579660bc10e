# xinledger

This package provides the data types and the binary wire format for a UTXO ledger. It has no dependencies outside the standard library.

| Module | Contents |
| --- | --- |
| `xinledger.integer` | `Integer`, a non-negative fixed-point amount with 8 decimal places, and `RationalNumber`, a ratio of two amounts. |
| `xinledger.script` | `Script`, a threshold script of the form `fffe<n>`, and `ScriptError`. |
| `xinledger.asset` | `Asset`, asset id constants such as `XIN_ASSET_ID`, `asset_id()` and `get_asset_capacity()`. |
| `xinledger.model` | Dataclasses for transactions, inputs, outputs, signatures, snapshots, rounds and UTXOs, plus the `OutputType` and `TransactionType` enums. |
| `xinledger.encoding` | `Encoder`, `Decoder` and `DecodeError` for the magic-prefixed big-endian encoding. |
| `xinledger.records` | Functions that marshal and unmarshal whole records. |

## Install

```
pip install .
```

To also install what the tests need:

```
pip install ".[test]"
```

## Amounts

```python
from xinledger.integer import Integer

a = Integer.from_whole(10000)
b = Integer.from_string("10000")
print(a + b)                                 # 20000.00000000
print(Integer.from_whole(1).div(3))          # 0.33333333
print(Integer.from_string("0.1").to_json())  # "0.10000000"
```

Behaviour of the amount methods:

- `from_string` drops digits past the eighth decimal place; it does not round.
- `from_json` parses a value written by `to_json`.
- `sign()` returns 1 for a positive amount and 0 for zero.

Invalid operations raise `ValueError`:

- a negative amount;
- adding or subtracting a non-positive amount;
- a subtraction whose result would go below zero;
- `mul` or `div` by a number that is not a positive whole number.

`Integer.ration(y)` returns a `RationalNumber`. Its `product(x)` scales an amount by the ratio and truncates the result. Its `cmp()` compares two ratios.

## Scripts

```python
from xinledger.script import Script, ScriptError

s = Script.threshold(2)
print(s)          # fffe02
s.validate(2)     # passes
s.validate(1)     # raises ScriptError
```

`verify_format()` checks the three-byte layout and that the threshold is at most 64.

## Assets

Each asset id is the SHA-256 digest of the asset's name.

`Asset.verify()` raises `AssetError` in two cases:

- the chain id is all zero bytes;
- the asset key is empty or has leading or trailing whitespace.

`get_asset_capacity(asset_id)` returns the deposit capacity for a known asset. For any other asset it returns a very large default.

## Transactions

```python
from xinledger.asset import XIN_ASSET_ID
from xinledger.model import new_transaction
from xinledger.records import marshal_transaction, unmarshal_transaction

tx = new_transaction(XIN_ASSET_ID)
tx.add_input(bytes(32), 0)
signed = tx.signed()

raw = marshal_transaction(signed)
again = unmarshal_transaction(raw)
assert marshal_transaction(again) == raw
```

`Transaction` can also add inputs with:

- `add_deposit_input()`;
- `add_universal_mint_input()`.

`SignedTransaction.transaction_type()` classifies a transaction from its inputs and outputs.

`payload_marshal()` encodes a transaction without its signatures.

## Rounds, snapshots, UTXOs and mint distributions

Each of the following pairs in `xinledger.records` converts a record to its binary form and back:

- `marshal_round` / `unmarshal_round`;
- `marshal_snapshot` / `unmarshal_snapshot`;
- `marshal_utxo` / `unmarshal_utxo`;
- `marshal_mint_distribution` / `unmarshal_mint_distribution`.

`snapshot_payload` encodes a snapshot without its signature.

Malformed or truncated input raises `xinledger.encoding.DecodeError`.

## What this package does not do

The package covers data and its encoding only. It does not provide any of the following:

- key generation, addresses or signing;
- signature checks or transaction validation against ledger state;
- hashing of payloads into transaction or snapshot ids;
- storage, networking, or a command-line tool.

Keys, masks, hashes and signatures are plain `bytes` of the required sizes: 32 bytes for keys and hashes, 64 bytes for signatures.

## Running the tests

```
pytest
```