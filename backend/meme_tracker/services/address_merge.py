from __future__ import annotations
import dataclasses
from typing import Iterable, Sequence

from meme_tracker.services.buyers import Buyer
from meme_tracker.store.records import PromisingAddress, address_key


def merge(
    existing: Sequence[PromisingAddress],
    incoming: Iterable[Buyer],
    token_id: str,
    token_symbol: str,
) -> list[PromisingAddress]:
    """Fold one token's buyers into the promising-address collection.

    Wallets seen for the first time become new records owned by ``token_id``.
    Wallets already on file get ``token_id`` appended to ``related_tokens``
    (unless it is their origin token or already listed). The result holds the
    existing records, in their original order, followed by the new ones.
    Inputs are not modified; running the same import twice changes nothing.
    """
    merged = [
        dataclasses.replace(record, related_tokens=list(record.related_tokens))
        for record in existing
    ]
    index = {record.address_key: record for record in merged}

    created: list[PromisingAddress] = []
    for buyer in incoming:
        key = address_key(buyer.wallet_address)
        record = index.get(key)
        if record is None:
            record = PromisingAddress(
                address=buyer.wallet_address,
                token_id=token_id,
                token_symbol=token_symbol,
                purchase_time=buyer.purchase_time,
                block_number=buyer.block_number,
                tx_hash=buyer.tx_hash,
                related_tokens=[],
                is_marked_promising=True,
            )
            index[key] = record
            created.append(record)
        elif record.token_id != token_id and token_id not in record.related_tokens:
            record.related_tokens.append(token_id)

    return merged + created
