# Overview: Pytest coverage for the sales inspection CLI commands.

import json

from conftest import USER_ID


class TestSalesCommands:

    def test_metrics_prints_dashboard_json(self, app, db_session, make_sale):
        make_sale()
        result = app.test_cli_runner().invoke(args=['sales', 'metrics', '--user-id', USER_ID])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert set(data) == {"metrics", "cash_flow"}

    def test_audit_consistent_ledger(self, app, db_session, make_sale):
        make_sale()
        result = app.test_cli_runner().invoke(args=['sales', 'audit-reversals', '--user-id', USER_ID])

        assert result.exit_code == 0
        assert "OK Reversal ledger is consistent" in result.output

    def test_audit_flags_unzeroed_reversal(self, app, db_session, make_sale, legacy_reversal):
        sale = make_sale()
        legacy_reversal(sale)
        result = app.test_cli_runner().invoke(args=['sales', 'audit-reversals', '--user-id', USER_ID])

        assert result.exit_code == 1
        assert str(sale.id) in result.output
