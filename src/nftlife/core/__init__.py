"""
Core package aggregator for nftlife contracts (grammar, record model, codec,
hashing, errors, versioning, journal tables).

## Contracts (single source of truth)
- Grammar: Rarity order and tier tables, fusion types, operations, table names.
- Schema: ``NftState`` (pydantic, frozen) and journal row models.
- Codec: bit-exact binary layout of ``NftState`` with a versioned discriminator.
- Hashing: canonical JSON and content-addressed record keys.
- Errors: lifecycle rejection taxonomy with stable codes.
- Constants/Versioning: contract constants and the layout version.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Naming policy: enum `.value` and field/column names are lower_snake.

## Downstream usage
- nftlife.lifecycle: components read and replace ``NftState`` values.
- nftlife.ledger: loads/stores records via the codec and raises core errors verbatim.
- nftlife.io: journal tables follow ``tables`` descriptors; FileStore persists codec bytes.

## Examples
```python
from nftlife.core.schema import NftState
from nftlife.core.codec import decode, encode

s = NftState(level=10, rarity="rare", mint_timestamp=0, last_updated_timestamp=0,
             evolution_count=2, entity_ref=bytes(32), uri="ipfs://meta")
decode(encode(s)) == s  # True
```
"""
