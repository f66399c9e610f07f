"""Tests for snapshot record construction."""

import pytest

from revenue_kernel.domain.records import Account, Estimate, Snapshot, as_accounts, as_estimates
from revenue_kernel.domain.values import IcpStatus, RevenueSegment
from revenue_kernel.exceptions import SnapshotShapeError


class TestEstimateFromMapping:

    def test_unknown_keys_ignored(self):
        est = Estimate.from_mapping({"id": "e1", "total_price": "10", "colour": "red"})
        assert est.id == "e1"
        assert est.total_price == "10"

    def test_raw_values_preserved(self):
        est = Estimate.from_mapping({"id": " e1 ", "contract_end": "not a date", "account_id": 7})
        assert est.id == "e1"
        assert est.contract_end == "not a date"
        assert est.account_id == "7"

    def test_missing_id(self):
        with pytest.raises(SnapshotShapeError) as exc_info:
            Estimate.from_mapping({"total_price": 1})
        assert exc_info.value.code == "MALFORMED_SNAPSHOT"

    def test_non_boolean_archived(self):
        with pytest.raises(SnapshotShapeError) as exc_info:
            Estimate.from_mapping({"id": "e1", "archived": "yes"})
        assert exc_info.value.record_id == "e1"

    def test_not_a_mapping(self):
        with pytest.raises(SnapshotShapeError):
            Estimate.from_mapping(["e1"])

    def test_records_are_frozen(self):
        est = Estimate(id="e1")
        with pytest.raises(AttributeError):
            est.total_price = 5


class TestAccountFromMapping:

    def test_enums_parsed(self):
        acc = Account.from_mapping({"id": "a1", "revenue_segment": "b", "icp_status": "Required"})
        assert acc.revenue_segment is RevenueSegment.B
        assert acc.icp_status is IcpStatus.REQUIRED

    def test_blank_enums_are_none(self):
        acc = Account.from_mapping({"id": "a1", "revenue_segment": " ", "icp_status": None})
        assert acc.revenue_segment is None
        assert acc.icp_status is None

    def test_unknown_segment(self):
        with pytest.raises(SnapshotShapeError):
            Account.from_mapping({"id": "a1", "revenue_segment": "Z"})

    def test_year_caches_keyed_by_string(self):
        acc = Account.from_mapping({"id": "a1", "total_estimates_by_year": {2025: 3}})
        assert acc.total_estimates_by_year == {"2025": 3}

    def test_year_cache_must_be_mapping(self):
        with pytest.raises(SnapshotShapeError):
            Account.from_mapping({"id": "a1", "revenue_by_year": [1, 2]})


class TestCollections:

    def test_mixed_records_and_mappings(self):
        result = as_estimates([Estimate(id="e1"), {"id": "e2"}])
        assert [e.id for e in result] == ["e1", "e2"]

    @pytest.mark.parametrize("bad", [None, "e1", {"id": "e1"}])
    def test_non_collections_rejected(self, bad):
        with pytest.raises(SnapshotShapeError):
            as_accounts(bad)

    def test_snapshot_helpers(self):
        snapshot = Snapshot.from_records(
            accounts=[{"id": "a1"}],
            estimates=[
                {"id": "e1", "account_id": "a1"},
                {"id": "e2"},
                {"id": "e3", "account_id": "a1"},
            ],
        )
        assert snapshot.account("a1").id == "a1"
        assert snapshot.account("missing") is None
        assert [e.id for e in snapshot.estimates_by_account()["a1"]] == ["e1", "e3"]
