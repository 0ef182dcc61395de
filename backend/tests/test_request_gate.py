# Overview: Pytest coverage for last-request-wins gating and change notifications.

import pytest

from saleslens.events import publish_sales_data_changed, subscribe_to_sales_data_changes
from saleslens.services.request_gate import RequestGate


class TestRequestGate:

    def test_newer_request_supersedes_older(self):
        gate = RequestGate()
        assert gate.begin("u", "metrics", 1)
        assert gate.begin("u", "metrics", 2)

        assert not gate.is_current("u", "metrics", 1)
        assert gate.is_current("u", "metrics", 2)

    def test_older_request_rejected_at_start(self):
        gate = RequestGate()
        gate.begin("u", "metrics", 5)
        assert not gate.begin("u", "metrics", 4)
        assert gate.is_current("u", "metrics", 5)

    def test_repeated_token_allowed(self):
        gate = RequestGate()
        assert gate.begin("u", "metrics", 3)
        assert gate.begin("u", "metrics", 3)

    def test_views_and_users_are_independent(self):
        gate = RequestGate()
        gate.begin("u", "metrics", 10)
        assert gate.begin("u", "cash-flow", 1)
        assert gate.begin("v", "metrics", 1)

    @pytest.mark.parametrize("token", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_token_rejected(self, token):
        gate = RequestGate()
        with pytest.raises(ValueError):
            gate.begin("u", "metrics", token)
        assert gate.begin("u", "metrics", 1)

    def test_reset(self):
        gate = RequestGate()
        gate.begin("u", "metrics", 10)
        gate.reset()
        assert gate.begin("u", "metrics", 1)


class TestSalesDataChanged:

    def test_subscriber_receives_kind_and_id(self):
        received = []
        unsubscribe = subscribe_to_sales_data_changes(
            lambda user_id, **payload: received.append((user_id, payload))
        )
        try:
            publish_sales_data_changed(user_id="u", entity_kind="sale", entity_id=7)
        finally:
            unsubscribe()
        assert received == [("u", {"entity_kind": "sale", "entity_id": 7})]

    def test_unsubscribed_handler_is_silent(self):
        received = []
        unsubscribe = subscribe_to_sales_data_changes(lambda user_id, **payload: received.append(payload))
        unsubscribe()
        publish_sales_data_changed(user_id="u", entity_kind="sale", entity_id=7)
        assert received == []
