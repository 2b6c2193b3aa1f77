"""
test_change_ledger.py - Unit tests for pending edit tracking

Tests:
- Field change upsert, replacement and no-op removal
- Fee add / update / delete, including add-then-delete cancellation
- Reverts by id (unknown ids are no-ops), revert-all-for-loan, clear-all
- Queries and immutable snapshots
"""

import dataclasses

import pytest

from pricing import ChangeLedger, FeeChangeKind
from tests.fakes import make_fee


# ============================================================================
# FIELD CHANGES
# ============================================================================

class TestFieldChanges:
    """Tests for track_field_change and its invariants."""

    def test_first_edit_is_recorded(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 0.05, 0.06)

        assert ledger.is_field_modified("L1", "pricing.baseRate")
        assert ledger.get_original_value("L1", "pricing.baseRate") == 0.05
        assert ledger.get_new_value("L1", "pricing.baseRate") == 0.06

    def test_repeated_edits_keep_one_change_with_last_values(self):
        """Many edits of the same field leave exactly one change, equal to the last."""
        ledger = ChangeLedger()
        for value in (0.06, 0.07, 0.08):
            ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 0.05, value)

        changes = ledger.get_changes_for_loan("L1")
        assert len(changes) == 1
        assert changes[0].new_value == 0.08
        assert changes[0].original_value == 0.05

    def test_replacement_gets_new_id(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.spread", "Spread", 1.5, 1.6)
        first_id = ledger.changes[0].id
        ledger.track_field_change("L1", "pricing.spread", "Spread", 1.5, 1.7)

        assert ledger.changes[0].id != first_id

    def test_edit_back_to_original_removes_change(self):
        """Reverting a value to its original drops the pending change."""
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 0.05, 0.06)
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 0.05, 0.05)

        assert not ledger.is_field_modified("L1", "pricing.baseRate")
        assert not ledger.has_changes()

    def test_deep_equal_values_are_a_no_op(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "meta.tags", "Tags", {"a": [1, 2]}, {"a": [1, 2]})

        assert not ledger.has_changes()

    def test_unknown_field_paths_are_accepted(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "custom.anything", "Anything", 1, 2)

        assert ledger.is_field_modified("L1", "custom.anything")

    def test_same_field_on_different_loans_is_independent(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.spread", "Spread", 1.5, 1.6)
        ledger.track_field_change("L2", "pricing.spread", "Spread", 2.0, 2.5)

        assert len(ledger.changes) == 2

    def test_records_are_frozen(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.spread", "Spread", 1.5, 1.6)

        with pytest.raises(dataclasses.FrozenInstanceError):
            ledger.changes[0].new_value = 9.9


# ============================================================================
# FEE CHANGES
# ============================================================================

class TestFeeChanges:
    """Tests for fee add / update / delete tracking."""

    def test_add_is_recorded(self):
        ledger = ChangeLedger()
        ledger.track_fee_add("L1", "FC1", "Arrangement")

        adds = ledger.get_pending_fee_adds("L1")
        assert len(adds) == 1
        assert adds[0].kind == FeeChangeKind.ADD
        assert adds[0].fee_config_id == "FC1"

    def test_second_update_of_same_fee_replaces_first(self):
        ledger = ChangeLedger()
        fee = make_fee("F1")
        ledger.track_fee_update("L1", "F1", fee, {"calculated_amount": 1200.0})
        ledger.track_fee_update("L1", "F1", fee, {"calculated_amount": 1500.0})

        updates = ledger.get_pending_fee_updates("L1")
        assert len(updates) == 1
        assert ledger.get_fee_updates("L1", "F1") == {"calculated_amount": 1500.0}
        assert updates[0].fee_name == "Arrangement Fee"

    def test_delete_is_recorded(self):
        ledger = ChangeLedger()
        ledger.track_fee_delete("L1", "F1", make_fee("F1", fee_config_id="FC1"))

        assert ledger.is_fee_deleted("L1", "F1")
        assert len(ledger.get_pending_fee_deletes("L1")) == 1

    def test_add_then_delete_cancels_the_add(self):
        """Deleting a fee whose config has a pending add removes the add; no delete is recorded."""
        ledger = ChangeLedger()
        ledger.track_fee_add("L1", "FC1", "Arrangement")
        ledger.track_fee_delete("L1", "pending-fee", {"feeConfigId": "FC1", "name": "Arrangement"})

        assert ledger.get_fee_changes_for_loan("L1") == ()
        assert not ledger.has_changes()

    def test_delete_on_other_loan_does_not_cancel_add(self):
        ledger = ChangeLedger()
        ledger.track_fee_add("L1", "FC1", "Arrangement")
        ledger.track_fee_delete("L2", "F9", {"feeConfigId": "FC1", "name": "Arrangement"})

        assert len(ledger.get_pending_fee_adds("L1")) == 1
        assert ledger.is_fee_deleted("L2", "F9")


# ============================================================================
# REVERTS
# ============================================================================

class TestReverts:
    """Tests for revert, revert_fee, revert_all_for_loan and clear_all."""

    def test_revert_removes_exactly_one_change(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 5.0, 5.5)
        ledger.track_field_change("L1", "pricing.spread", "Spread", 1.5, 2.0)
        base_rate_id = ledger.changes[0].id

        ledger.revert(base_rate_id)

        assert [c.field_path for c in ledger.changes] == ["pricing.spread"]

    def test_unknown_ids_are_silent_no_ops(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 5.0, 5.5)
        ledger.track_fee_add("L1", "FC1", "Arrangement")

        ledger.revert("change-999")
        ledger.revert_fee("fee-change-999")

        assert len(ledger.changes) == 1
        assert len(ledger.fee_changes) == 1

    def test_revert_fee(self):
        ledger = ChangeLedger()
        ledger.track_fee_add("L1", "FC1", "Arrangement")
        ledger.revert_fee(ledger.fee_changes[0].id)

        assert ledger.fee_changes == ()

    def test_revert_all_for_loan_clears_fields_and_fees(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 5.0, 5.5)
        ledger.track_fee_add("L1", "FC1", "Arrangement")
        ledger.track_field_change("L2", "pricing.baseRate", "Base Rate", 4.0, 4.5)

        ledger.revert_all_for_loan("L1")

        assert not ledger.has_changes_for_loan("L1")
        assert ledger.has_changes_for_loan("L2")

    def test_revert_all_for_loan_can_keep_fee_changes(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 5.0, 5.5)
        ledger.track_fee_add("L1", "FC1", "Arrangement")

        ledger.revert_all_for_loan("L1", include_fees=False)

        assert ledger.get_changes_for_loan("L1") == ()
        assert len(ledger.get_fee_changes_for_loan("L1")) == 1

    def test_clear_all_empties_both_ledgers(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 5.0, 5.5)
        ledger.track_fee_add("L2", "FC1", "Arrangement")

        ledger.clear_all()

        assert not ledger.has_changes()


# ============================================================================
# SNAPSHOTS
# ============================================================================

class TestSnapshot:
    """Tests for the synchronous ledger snapshot."""

    def test_snapshot_is_unaffected_by_later_edits(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 5.0, 5.5)
        state = ledger.snapshot()

        ledger.track_field_change("L1", "pricing.baseRate", "Base Rate", 5.0, 6.0)
        ledger.track_fee_add("L1", "FC1", "Arrangement")

        assert state.changes[0].new_value == 5.5
        assert state.fee_changes == ()
        assert state.count == 1

    def test_snapshot_lookups(self):
        ledger = ChangeLedger()
        ledger.track_field_change("L1", "pricing.spread", "Spread", 1.5, 1.75)
        ledger.track_fee_add("L2", "FC1", "Arrangement")
        state = ledger.snapshot()

        assert state.find_change("L1", "pricing.spread").new_value == 1.75
        assert state.find_change("L1", "pricing.baseRate") is None
        assert len(state.fee_changes_for_loan("L2")) == 1
