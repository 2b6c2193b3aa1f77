"""
test_invoices_api.py - Tests for the invoice endpoints nested under a loan

Tests:
- Add an invoice in the loan's currency; totals follow
- Update amount and collection status; unknown status changes nothing
- Remove an invoice, but never a loan's last one
- Move an invoice between loans of the same currency
"""


def add_invoice(client, loan_id, number="INV-1002", amount=40000.0):
    return client.post(f"/api/loans/{loan_id}/invoices", json={
        "invoiceNumber": number,
        "buyerName": "Initech Supply",
        "amount": amount,
        "dueDate": "2026-04-01",
    })


# ============================================================================
# ADD / UPDATE / REMOVE
# ============================================================================

class TestAddInvoice:
    """Tests for POST /api/loans/{id}/invoices."""

    def test_adds_invoice_in_loan_currency(self, client, loans):
        response = add_invoice(client, loans["LN-001"].id)

        body = response.json()
        assert response.status_code == 201
        assert [i["invoiceNumber"] for i in body["invoices"]] == ["INV-1001", "INV-1002"]
        assert body["invoices"][1]["currency"] == "USD"
        assert body["invoices"][1]["status"] == "pending"
        assert body["totalInvoiceAmount"] == 100000.0

    def test_missing_loan_is_404(self, client, loans):
        assert add_invoice(client, "nope").status_code == 404

    def test_amount_must_be_positive(self, client, loans):
        assert add_invoice(client, loans["LN-001"].id, amount=0).status_code == 422


class TestUpdateInvoice:
    """Tests for PUT /api/loans/{id}/invoices/{invoice_id}."""

    def test_updates_amount_and_status(self, client, loans):
        loan = loans["LN-001"]
        invoice_id = loan.invoices[0].id

        response = client.put(
            f"/api/loans/{loan.id}/invoices/{invoice_id}",
            json={"amount": 55000.0, "status": "collected"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["invoices"][0]["amount"] == 55000.0
        assert body["invoices"][0]["status"] == "collected"
        assert body["totalInvoiceAmount"] == 55000.0

    def test_unknown_status_changes_nothing(self, client, loans):
        loan = loans["LN-001"]
        invoice_id = loan.invoices[0].id

        response = client.put(
            f"/api/loans/{loan.id}/invoices/{invoice_id}",
            json={"amount": 1.0, "status": "lost"},
        )

        assert response.status_code == 400
        assert client.get(f"/api/loans/{loan.id}").json()["invoices"][0]["amount"] == 60000.0

    def test_unknown_invoice_is_404(self, client, loans):
        response = client.put(f"/api/loans/{loans['LN-001'].id}/invoices/nope", json={"amount": 1.0})

        assert response.status_code == 404


class TestRemoveInvoice:
    """Tests for DELETE /api/loans/{id}/invoices/{invoice_id}."""

    def test_removes_invoice(self, client, loans):
        loan = loans["LN-001"]
        add_invoice(client, loan.id)

        response = client.delete(f"/api/loans/{loan.id}/invoices/{loan.invoices[0].id}")

        body = response.json()
        assert response.status_code == 200
        assert [i["invoiceNumber"] for i in body["invoices"]] == ["INV-1002"]
        assert body["totalInvoiceAmount"] == 40000.0

    def test_last_invoice_cannot_be_removed(self, client, loans):
        loan = loans["LN-001"]

        response = client.delete(f"/api/loans/{loan.id}/invoices/{loan.invoices[0].id}")

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot remove the last invoice from a loan"


# ============================================================================
# MOVE
# ============================================================================

class TestMoveInvoice:
    """Tests for POST /api/loans/{id}/invoices/{invoice_id}/move."""

    def test_moves_invoice_and_recalculates_both_loans(self, client, loans):
        source, target = loans["LN-001"], loans["LN-003"]
        add_invoice(client, source.id)
        invoice_id = source.invoices[0].id

        response = client.post(
            f"/api/loans/{source.id}/invoices/{invoice_id}/move",
            json={"targetLoanId": target.id},
        )

        body = response.json()
        assert response.status_code == 200
        assert [i["invoiceNumber"] for i in body["sourceLoan"]["invoices"]] == ["INV-1002"]
        assert body["sourceLoan"]["totalInvoiceAmount"] == 40000.0
        assert [i["id"] for i in body["targetLoan"]["invoices"]] == [invoice_id]
        assert body["targetLoan"]["invoices"][0]["loanId"] == target.id
        assert body["targetLoan"]["totalInvoiceAmount"] == 60000.0

    def test_currency_mismatch_is_400(self, client, loans):
        source = loans["LN-001"]

        response = client.post(
            f"/api/loans/{source.id}/invoices/{source.invoices[0].id}/move",
            json={"targetLoanId": loans["LN-002"].id},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot move invoice between loans with different currencies"

    def test_last_invoice_cannot_be_moved(self, client, loans):
        source = loans["LN-001"]

        response = client.post(
            f"/api/loans/{source.id}/invoices/{source.invoices[0].id}/move",
            json={"targetLoanId": loans["LN-003"].id},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot move the last invoice from a loan"

    def test_missing_target_is_404(self, client, loans):
        source = loans["LN-001"]

        response = client.post(
            f"/api/loans/{source.id}/invoices/{source.invoices[0].id}/move",
            json={"targetLoanId": "nope"},
        )

        assert response.status_code == 404
