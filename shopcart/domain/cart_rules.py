# shopcart/domain/cart_rules.py
"""
Pure cart state transitions.

Each function takes the current entries and returns the new entries; nothing
is persisted here. CartService commits the result through CartRepo.
"""
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from shopcart.domain.entities import CartEntry

Entries = tuple[CartEntry, ...]


def _find(entries: Entries, product_id: int) -> int | None:
    for idx, entry in enumerate(entries):
        if entry.product_id == product_id:
            return idx
    return None


def add_entry(entries: Entries, product_id: int, quantity: int, now: datetime) -> Entries:
    """Merge into the existing entry for the product, or append a new one."""
    idx = _find(entries, product_id)
    if idx is None:
        return entries + (CartEntry(product_id=product_id, quantity=quantity, added_at=now),)

    current = entries[idx]
    merged = replace(current, quantity=current.quantity + quantity)
    return entries[:idx] + (merged,) + entries[idx + 1:]


def set_quantity(entries: Entries, product_id: int, quantity: int) -> Entries:
    idx = _find(entries, product_id)
    if idx is None:
        return entries
    if quantity <= 0:
        return entries[:idx] + entries[idx + 1:]
    # position and added_at stay untouched
    return entries[:idx] + (replace(entries[idx], quantity=quantity),) + entries[idx + 1:]


def remove_entry(entries: Entries, product_id: int) -> Entries:
    return tuple(e for e in entries if e.product_id != product_id)


def clear_entries(entries: Entries) -> Entries:
    return ()


def entry_by_id(entries: Iterable[CartEntry], entry_id: int) -> CartEntry | None:
    for entry in entries:
        if entry.id == entry_id:
            return entry
    return None


def item_count(entries: Iterable[CartEntry]) -> int:
    return sum(e.quantity for e in entries)
