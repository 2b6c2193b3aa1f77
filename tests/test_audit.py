"""
test_audit.py - Tests for the loan audit trail

Tests:
- detect_changes and JSON conversion of audited values
- Loan, fee and invoice mutations write audit entries with the acting user
- GET /api/loans/{id}/audit: newest first, filters and paging
"""

from datetime import date, datetime

from models import AuditAction, AuditEntityType, LoanStatus
from services import audit_service


USER_HEADERS = {"X-User-Id": "u-7", "X-User-Name": "Dana Credit"}


# ============================================================================
# SERVICE
# ============================================================================

class TestDetectChanges:
    """Tests for detect_changes and to_json_value."""

    def test_reports_only_changed_fields(self):
        changes = audit_service.detect_changes(
            {"pricing.baseRate": 5.0, "pricing.spread": 1.5},
            {"pricing.baseRate": 6.0, "pricing.spread": 1.5},
        )

        assert changes == [("pricing.baseRate", 5.0, 6.0)]

    def test_keys_on_one_side_only(self):
        changes = audit_service.detect_changes({"a": 1}, {"b": 2})

        assert changes == [("a", 1, None), ("b", None, 2)]

    def test_json_values(self):
        assert audit_service.to_json_value(LoanStatus.ACTIVE) == "active"
        assert audit_service.to_json_value(date(2026, 3, 1)) == "2026-03-01"
        assert audit_service.to_json_value(1.5) == 1.5


class TestLoanAuditHistory:
    """Tests for get_loan_audit_history."""

    def test_newest_first_with_date_filter(self, db, loans):
        loan_id = loans["LN-001"].id
        for day, field in ((1, "pricing.spread"), (2, "pricing.baseRate")):
            audit_service.create_audit_entry(
                db, AuditEntityType.LOAN, loan_id, AuditAction.UPDATE,
                loan_id=loan_id, field_name=field, timestamp=datetime(2026, 2, day),
            )
        db.flush()

        entries, total = audit_service.get_loan_audit_history(db, loan_id)
        recent, recent_total = audit_service.get_loan_audit_history(
            db, loan_id, start_date=datetime(2026, 2, 2),
        )

        assert total == 2
        assert [e.field_name for e in entries] == ["pricing.baseRate", "pricing.spread"]
        assert recent_total == 1
        assert recent[0].field_name == "pricing.baseRate"


# ============================================================================
# API
# ============================================================================

class TestAuditEndpoint:
    """Tests for the entries written by mutations and GET /api/loans/{id}/audit."""

    def test_pricing_update_is_audited_per_field(self, client, loans):
        loan_id = loans["LN-001"].id
        client.put(
            f"/api/loans/{loan_id}",
            json={"pricing": {"baseRate": 6.0}, "pricingStatus": "approved"},
            headers=USER_HEADERS,
        )

        body = client.get(f"/api/loans/{loan_id}/audit").json()

        assert body["total"] == 2
        by_field = {e["fieldName"]: e for e in body["entries"]}
        assert by_field["pricing.baseRate"]["oldValue"] == 5.0
        assert by_field["pricing.baseRate"]["newValue"] == 6.0
        assert by_field["pricingStatus"]["oldValue"] == "priced"
        assert by_field["pricingStatus"]["newValue"] == "approved"
        assert {e["userName"] for e in body["entries"]} == {"Dana Credit"}
        assert {e["action"] for e in body["entries"]} == {"update"}

    def test_unchanged_values_write_nothing(self, client, loans):
        loan_id = loans["LN-001"].id
        client.put(f"/api/loans/{loan_id}", json={"pricing": {"baseRate": 5.0}})

        assert client.get(f"/api/loans/{loan_id}/audit").json()["total"] == 0

    def test_fee_add_and_remove(self, client, loans, fee_configs):
        loan = loans["LN-001"]
        client.post(f"/api/loans/{loan.id}/fees", json={"feeConfigId": fee_configs["COMM"].id})
        client.delete(f"/api/loans/{loan.id}/fees/{loan.fees[0].id}")

        entries = client.get(f"/api/loans/{loan.id}/audit").json()["entries"]

        by_action = {e["action"]: e for e in entries}
        assert set(by_action) == {"create", "delete"}
        assert by_action["create"]["entityType"] == "fee"
        assert by_action["create"]["newValue"]["code"] == "COMM"
        assert by_action["create"]["loanId"] == loan.id
        assert by_action["delete"]["oldValue"]["code"] == "ARR"
        assert by_action["delete"]["userId"] == "system"

    def test_invoice_move_is_on_both_trails(self, client, loans):
        source, target = loans["LN-001"], loans["LN-003"]
        client.post(f"/api/loans/{source.id}/invoices", json={
            "invoiceNumber": "INV-1002", "buyerName": "Initech Supply",
            "amount": 40000.0, "dueDate": "2026-04-01",
        })
        invoice_id = source.invoices[0].id
        client.post(f"/api/loans/{source.id}/invoices/{invoice_id}/move", json={"targetLoanId": target.id})

        target_entries = client.get(f"/api/loans/{target.id}/audit").json()["entries"]
        source_moves = client.get(
            f"/api/loans/{source.id}/audit", params={"fieldName": "loanId"},
        ).json()["entries"]

        assert [(e["action"], e["entityId"]) for e in target_entries] == [("move", invoice_id)]
        assert target_entries[0]["oldValue"] == source.id
        assert target_entries[0]["newValue"] == target.id
        assert len(source_moves) == 1

    def test_paging(self, client, loans):
        loan_id = loans["LN-001"].id
        client.put(f"/api/loans/{loan_id}", json={"pricing": {"baseRate": 6.0, "spread": 2.0}})

        body = client.get(f"/api/loans/{loan_id}/audit", params={"limit": 1}).json()

        assert body["total"] == 2
        assert len(body["entries"]) == 1

    def test_missing_loan_is_404(self, client, loans):
        assert client.get("/api/loans/nope/audit").status_code == 404
