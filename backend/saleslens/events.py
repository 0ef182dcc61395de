# Overview: In-process notifications that derived sales state is stale.

"""
Subscribers receive the entity kind and id of what changed and re-query;
no data is embedded in the event. Delivery may repeat, so handlers must be
idempotent (recomputing metrics twice is harmless).
"""

from __future__ import annotations

from blinker import Namespace


ENTITY_SALE = "sale"
ENTITY_REVERSAL = "reversal"
ENTITY_CREDIT_PAYMENT = "credit_payment"

_signals = Namespace()

sales_data_changed = _signals.signal("sales-data-changed")


def publish_sales_data_changed(*, user_id: str, entity_kind: str, entity_id: int) -> None:
    sales_data_changed.send(user_id, entity_kind=entity_kind, entity_id=entity_id)


def subscribe_to_sales_data_changes(handler):
    """
    Connect handler(user_id, entity_kind=..., entity_id=...) and return a
    callable that disconnects it.
    """
    def _listener(sender, **payload):
        handler(sender, **payload)

    sales_data_changed.connect(_listener, weak=False)

    def _unsubscribe():
        sales_data_changed.disconnect(_listener)

    return _unsubscribe
