"""
Tests for PeriodComparator
"""
from conftest import record
from mcp_disclosure_ux.core import MatchKey, PeriodComparator
from mcp_disclosure_ux.core.comparator import display_value


class TestDiffFields:
    """Test field-level diff."""

    def test_single_ownership_change(self):
        """Test the ownership-only change yields exactly one entry."""
        previous = [record("neom", ownership=45, currency="USD")]
        current = [record("neom", ownership=60, currency="USD")]

        changes = PeriodComparator().diff_fields(current, previous)

        assert len(changes) == 1
        change = changes[0]
        assert change.entity_name == "neom"
        assert change.field_label == "Ownership %"
        assert change.previous_value == "45"
        assert change.current_value == "60"
        assert change.change_type == "Modified"

    def test_integral_float_equals_int(self):
        """Test 45 and 45.0 are not reported as a change."""
        previous = [record("neom", ownership=45)]
        current = [record("neom", ownership=45.0)]
        assert PeriodComparator().diff_fields(current, previous) == []

    def test_whitespace_is_trimmed(self):
        """Test surrounding whitespace does not count as a change."""
        previous = [record("Alpha", country_of_incorporation="KSA")]
        current = [record("Alpha", country_of_incorporation="  KSA ")]
        assert PeriodComparator().diff_fields(current, previous) == []

    def test_added_and_removed_values(self):
        """Test change type for values appearing and disappearing."""
        previous = [record("Alpha", "101", moi_number=None, currency="SAR")]
        current = [record("Alpha", "101", moi_number="7001", currency="")]

        changes = {c.field_label: c for c in PeriodComparator().diff_fields(current, previous)}

        assert changes["MOI Number"].change_type == "Added"
        assert changes["MOI Number"].previous_value == ""
        assert changes["Currency"].change_type == "Removed"
        assert changes["Currency"].current_value == ""

    def test_fields_in_fixed_order(self):
        """Test changes follow the monitored field order."""
        previous = [record("Alpha", currency="SAR", country_of_incorporation="KSA", entity_name_arabic="أ")]
        current = [record("Alpha", currency="USD", country_of_incorporation="UAE", entity_name_arabic="ب")]

        labels = [c.field_label for c in PeriodComparator(MatchKey.NAME).diff_fields(current, previous)]

        assert labels == ["Entity Name (Arabic)", "Country", "Currency"]

    def test_new_record_entry(self):
        """Test an unmatched record yields one synthetic entry."""
        comparator = PeriodComparator()
        current = [record("Fresh Co", "999", 10.0)]

        changes = comparator.diff_fields(current, [])

        assert comparator.has_new_records(current, []) is True
        assert len(changes) == 1
        assert changes[0].field_label == "New Record"
        assert changes[0].change_type == "Added"
        assert changes[0].previous_value == "(not existed)"
        assert changes[0].current_value == "(new entity)"


class TestMatching:
    """Test the match key."""

    def test_registration_number_separates_same_name(self):
        """Test same-name entities with different CR numbers do not merge."""
        previous = [record("Alpha", "101", 50.0)]
        current = [record("Alpha", "102", 50.0)]

        comparator = PeriodComparator(MatchKey.NAME_AND_REGISTRATION)

        assert comparator.match(current[0], previous) is None
        assert comparator.find_deleted(current, previous) == previous
        assert comparator.has_new_records(current, previous) is True

    def test_name_only_key(self):
        """Test name-only matching pairs them and reports the CR change."""
        previous = [record("Alpha", "101", 50.0)]
        current = [record("Alpha", "102", 50.0)]

        comparator = PeriodComparator(MatchKey.NAME)
        changes = comparator.diff_fields(current, previous)

        assert comparator.match(current[0], previous) is previous[0]
        assert [c.field_label for c in changes] == ["CR Number"]

    def test_first_match_wins(self):
        """Test duplicates in the previous period resolve to the first."""
        previous = [record("Alpha", "101", 10.0), record("Alpha", "101", 20.0)]
        assert PeriodComparator().match(record("Alpha", "101"), previous) is previous[0]


class TestDeletionsAndNewRecords:
    """Test deletion and new-record detection."""

    def test_find_deleted(self):
        """Test B missing from current is reported."""
        previous = [record("A", "1"), record("B", "2")]
        current = [record("A", "1")]

        deleted = PeriodComparator().find_deleted(current, previous)

        assert [r.entity_name_english for r in deleted] == ["B"]

    def test_no_new_records_when_all_match(self):
        """Test has_new_records is false for identical sets."""
        previous = [record("A", "1"), record("B", "2")]
        current = [record("B", "2"), record("A", "1")]
        assert PeriodComparator().has_new_records(current, previous) is False

    def test_ownership_changed(self):
        """Test ownership change detection on matched rows only."""
        comparator = PeriodComparator()
        previous = [record("A", "1", 45.0)]

        assert comparator.ownership_changed(record("A", "1", 60.0), previous) is True
        assert comparator.ownership_changed(record("A", "1", 45), previous) is False
        assert comparator.ownership_changed(record("Z", "9", 60.0), previous) is False


class TestDisplayValue:
    """Test comparison value rendering."""

    def test_values(self):
        assert display_value(None) == ""
        assert display_value(45.0) == "45"
        assert display_value(45.5) == "45.5"
        assert display_value(" KSA ") == "KSA"
        assert display_value(7) == "7"
