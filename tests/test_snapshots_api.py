"""
test_snapshots_api.py - Tests for the snapshot endpoints

Tests:
- Recording a snapshot attributes it to the X-User-* headers (or System)
- changeCount defaults to the number of change details
- Timeline listing with total, limit and skip
- Detail returns decompressed loans; unknown ids are 404
- Delete-all reports how many were removed
"""

import pytest


def loan_payload(loan_id="L1", currency="USD", rate=6.5, fees=1000.0):
    return {
        "id": loan_id,
        "loanNumber": f"LN-{loan_id}",
        "currency": currency,
        "totalAmount": 100000.0,
        "totalFees": fees,
        "interestAmount": 3223.29,
        "netProceeds": 100000.0 - fees - 3223.29,
        "pricing": {"baseRate": rate - 1.5, "spread": 1.5, "effectiveRate": rate},
    }


@pytest.fixture
def create(client, customer):
    def _create(loans=None, headers=None, **extra):
        body = {"customerId": customer.id, "loans": loans or [loan_payload()]}
        body.update(extra)
        return client.post("/api/snapshots", json=body, headers=headers or {})
    return _create


class TestCreateSnapshot:
    """Tests for POST /api/snapshots."""

    def test_user_comes_from_headers(self, create):
        response = create(headers={"X-User-Id": "u-7", "X-User-Name": "Robin Ops"})

        body = response.json()
        assert response.status_code == 201
        assert body["userId"] == "u-7"
        assert body["userName"] == "Robin Ops"
        assert body["summary"]["USD"]["loanCount"] == 1
        assert body.get("delta") is None

    def test_defaults_to_system_user(self, create):
        body = create().json()

        assert body["userId"] == "system"
        assert body["userName"] == "System"

    def test_change_count_defaults_to_detail_count(self, create):
        changes = {"statuses": [{
            "loanId": "L1", "loanNumber": "LN-L1", "field": "pricingStatus",
            "oldValue": "pending", "newValue": "priced",
        }]}

        body = create(changes=changes).json()

        assert body["changeCount"] == 1
        assert body["changes"]["statuses"][0]["newValue"] == "priced"

    def test_second_snapshot_has_delta(self, create):
        create(loans=[loan_payload(rate=6.5)])
        body = create(loans=[loan_payload(rate=6.75, fees=1200.0)]).json()

        assert body["delta"]["USD"]["feesChange"] == pytest.approx(200.0)
        assert body["delta"]["USD"]["avgRateChange"] == pytest.approx(25.0)

    def test_invalid_body_is_422(self, client):
        assert client.post("/api/snapshots", json={"loans": []}).status_code == 422


class TestReadSnapshots:
    """Tests for listing and fetching snapshots."""

    def test_list_is_newest_first_with_total(self, client, customer, create):
        first = create(description="first").json()
        second = create(description="second").json()

        response = client.get("/api/snapshots", params={"customerId": customer.id, "limit": 1})

        body = response.json()
        assert body["total"] == 2
        assert body["limit"] == 1
        assert len(body["snapshots"]) == 1
        assert body["snapshots"][0]["id"] in {first["id"], second["id"]}
        assert "loans" not in body["snapshots"][0]

    def test_customer_id_is_required(self, client):
        assert client.get("/api/snapshots").status_code == 422

    def test_detail_includes_loans(self, client, create):
        loans = [loan_payload("L1"), loan_payload("L2", currency="EUR")]
        snapshot_id = create(loans=loans).json()["id"]

        response = client.get(f"/api/snapshots/{snapshot_id}")

        assert response.status_code == 200
        assert response.json()["loans"] == loans

    def test_unknown_snapshot_is_404(self, client):
        response = client.get("/api/snapshots/nope")

        assert response.status_code == 404
        assert response.json()["detail"] == "Snapshot with ID nope not found"


class TestDeleteSnapshots:
    def test_delete_all(self, client, customer, create):
        create()
        create()

        response = client.delete("/api/snapshots")

        assert response.json() == {"deleted": 2}
        assert client.get("/api/snapshots", params={"customerId": customer.id}).json()["total"] == 0
