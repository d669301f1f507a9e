"""
Tests for period labels, the wire format and the submission API gateway
"""
import json
from unittest.mock import MagicMock

import httpx
import pytest

from conftest import record
from mcp_disclosure_ux.adapters import HttpSubmissionGateway
from mcp_disclosure_ux.core import (
    DeadlineService,
    InvalidPeriod,
    NotFound,
    PeriodDeadline,
    PeriodSequence,
    PermissionViolation,
    StorageFailure,
    SubmissionGateway,
    SubmissionService,
    parse_period_label,
    period_end_date,
)
from mcp_disclosure_ux.core.domain import MONITORED_FIELDS
from mcp_disclosure_ux.core.wire import (
    OWNERSHIP_STRUCTURE_FROM_API,
    RELATIONSHIP_FROM_API,
    from_wire,
    to_wire,
)

BASE_URL = "https://submit.example.test"


class TestPeriodLabels:
    """Test period label parsing."""

    def test_parse(self):
        label = parse_period_label("First Half 2025")
        assert label.year == 2025
        assert label.name == "First Half"
        assert str(label) == "First Half 2025"

    def test_case_insensitive_and_legacy_spelling(self):
        """Test lowercase names and the legacy 'forth quarter'."""
        assert str(parse_period_label("third quarter 2025")) == "Third Quarter 2025"
        assert str(parse_period_label("Forth Quarter 2026")) == "Fourth Quarter 2026"

    @pytest.mark.parametrize("label", ["", "2025", "Second Quarter 2025", "First Half", "First Half twenty"])
    def test_invalid(self, label):
        with pytest.raises(InvalidPeriod):
            parse_period_label(label)

    def test_end_dates(self):
        assert period_end_date("First Half 2025") == "30 Jun 2025"
        assert period_end_date("Third Quarter 2025") == "30 Sep 2025"
        assert period_end_date("Fourth Quarter 2025") == "31 Dec 2025"


class TestPeriodSequence:
    """Test the ordered period sequence."""

    def test_for_years_order(self):
        sequence = PeriodSequence.for_years(2025, 2026)
        assert sequence.labels == [
            "First Half 2025", "Third Quarter 2025", "Fourth Quarter 2025",
            "First Half 2026", "Third Quarter 2026", "Fourth Quarter 2026",
        ]

    def test_previous_and_next(self):
        sequence = PeriodSequence.for_years(2025, 2026)
        assert sequence.previous("First Half 2025") is None
        assert sequence.previous("First Half 2026") == "Fourth Quarter 2025"
        assert sequence.next("Fourth Quarter 2025") == "First Half 2026"
        assert sequence.next("Fourth Quarter 2026") is None

    def test_unknown_label(self):
        """Test previous() on a label outside the sequence."""
        with pytest.raises(InvalidPeriod):
            PeriodSequence.for_years(2025, 2025).previous("First Half 2026")

    def test_duplicates_rejected(self):
        with pytest.raises(InvalidPeriod):
            PeriodSequence(["First Half 2025", "first half 2025"])


class TestWireFormat:
    """Test record <-> API transformation."""

    def full_record(self, **overrides):
        values = dict(
            asset_code="AC-1",
            entity_name_arabic="ألفا",
            moi_number="7001",
            country_of_incorporation="Saudi Arabia",
            acquisition_disposal_date="2024-05-01",
            direct_parent_entity="Parent Co",
            ultimate_parent_entity="PIF",
            investment_relationship_type="Subsidiary",
            ownership_structure="Direct to PIF",
            principal_activities="Tourism",
            currency="SAR",
        )
        values.update(overrides)
        return record("Alpha", "1010", 45.5, **values)

    def round_trip(self, source):
        return from_wire(to_wire(source, 2025, "Third Quarter"))

    def test_field_mapping(self):
        """Test outbound keys and values."""
        payload = to_wire(self.full_record(investment_relationship_type="Joint venture"), 2025, "Third Quarter")

        assert payload["year"] == 2025
        assert payload["time_period"] == "Third Quarter"
        assert payload["entity_name"] == "Alpha"
        assert payload["arabic_legal_name"] == "ألفا"
        assert payload["commercial_registration_number"] == "1010"
        assert payload["relationship_of_investment"] == "JV"
        assert payload["direct_or_indirect"] == "Direct"
        assert payload["entities_principal_activities"] == "Tourism"

    @pytest.mark.parametrize("relationship", ["Joint venture", "Subsidiary", "Associate"])
    @pytest.mark.parametrize("structure", ["Direct to PIF", "In-direct"])
    def test_round_trip_monitored_fields(self, relationship, structure):
        """Test every vocabulary entry survives a round trip."""
        source = self.full_record(investment_relationship_type=relationship, ownership_structure=structure)
        restored = self.round_trip(source)

        for attr, _ in MONITORED_FIELDS:
            assert getattr(restored, attr) == getattr(source, attr), attr
        assert restored.entity_name_english == source.entity_name_english
        assert restored.asset_code == source.asset_code

    @pytest.mark.parametrize("alias, canonical", [("Direct", "Direct to PIF"), ("Indirect", "In-direct")])
    def test_structure_aliases_normalize(self, alias, canonical):
        """Test API-style spellings come back canonical."""
        restored = self.round_trip(self.full_record(ownership_structure=alias))
        assert restored.ownership_structure == canonical

    def test_inbound_vocabularies(self):
        assert RELATIONSHIP_FROM_API["JV"] == "Joint venture"
        assert OWNERSHIP_STRUCTURE_FROM_API == {"Direct": "Direct to PIF", "Indirect": "In-direct"}

    def test_id_only_for_existing_remote_rows(self):
        """Test ids go out only for numeric, non-new rows."""
        assert to_wire(record("A", id="42", is_new_row=False), 2025, "First Half")["id"] == 42
        assert "id" not in to_wire(record("A", id="42", is_new_row=True), 2025, "First Half")
        assert "id" not in to_wire(record("A", id="ab12", is_new_row=False), 2025, "First Half")

    def test_from_wire_metadata(self):
        """Test API rows are tagged and submitted rows are read-only."""
        restored = from_wire({"id": 7, "entity_name": "Alpha", "is_submitted": True, "submitted_by": 3})

        assert restored.id == "7"
        assert restored.data_source == "api"
        assert restored.is_submitted is True
        assert restored.is_row_read_only is True
        assert restored.is_new_row is False
        assert restored.submitted_by == "3"


def gateway_with(handler) -> HttpSubmissionGateway:
    return HttpSubmissionGateway(BASE_URL, token="secret", transport=httpx.MockTransport(handler))


class TestHttpSubmissionGateway:
    """Test the httpx gateway against a mock transport."""

    def test_list_by_period(self):
        """Test query parameters, auth header and body."""
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json=[{"id": 1, "entity_name": "Alpha"}])

        items = gateway_with(handler).list_by_period(2025, "Third Quarter")

        request = seen["request"]
        assert request.method == "GET"
        assert request.url.path == "/api/investment/period/"
        assert request.url.params["year"] == "2025"
        assert request.url.params["time_period"] == "Third Quarter"
        assert request.headers["Authorization"] == "Bearer secret"
        assert items == [{"id": 1, "entity_name": "Alpha"}]

    def test_list_404_is_empty(self):
        gateway = gateway_with(lambda request: httpx.Response(404, json={"detail": "Not found."}))
        assert gateway.list_by_period(2025, "First Half") == []

    def test_list_wrapped_results(self):
        gateway = gateway_with(lambda request: httpx.Response(200, json={"results": [{"id": 2}]}))
        assert gateway.list_by_period(2025, "First Half") == [{"id": 2}]

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failures(self, status):
        gateway = gateway_with(lambda request: httpx.Response(status, json={"detail": "nope"}))
        with pytest.raises(PermissionViolation):
            gateway.list_by_period(2025, "First Half")

    def test_save_draft_posts_list(self):
        """Test the draft payload is posted as a JSON array."""
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=seen["body"])

        payload = [{"year": 2025, "time_period": "First Half", "entity_name": "Alpha"}]
        assert gateway_with(handler).save_draft(payload) == payload
        assert seen["body"] == payload

    def test_submit_deadline_is_invalid_period(self):
        gateway = gateway_with(
            lambda request: httpx.Response(400, json={"detail": "Submission deadline has passed"})
        )
        with pytest.raises(InvalidPeriod):
            gateway.submit_period(2025, "First Half")

    def test_submit_other_400_is_storage_failure(self):
        gateway = gateway_with(lambda request: httpx.Response(400, json={"detail": "bad payload"}))
        with pytest.raises(StorageFailure):
            gateway.submit_period(2025, "First Half")

    def test_submit_404_is_not_found(self):
        gateway = gateway_with(lambda request: httpx.Response(404, json={"detail": "No investments"}))
        with pytest.raises(NotFound):
            gateway.submit_period(2025, "First Half")

    def test_server_error(self):
        gateway = gateway_with(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(StorageFailure) as exc_info:
            gateway.unsubmit_period(2025, "First Half")
        assert exc_info.value.details["status_code"] == 503

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(StorageFailure, match="connection refused"):
            gateway_with(handler).list_by_period(2025, "First Half")

    def test_unsubmit_by_id(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"detail": "Unsubmitted"})

        assert gateway_with(handler).unsubmit_by_id(42) == {"detail": "Unsubmitted"}
        assert seen["body"] == {"id": 42}

    def test_list_deadlines_filters(self):
        """Test deadline filters are sent as query parameters."""
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json=[{"year": 2025, "time_period": "Fourth Quarter", "dead_line": "2026-01-31"}])

        items = gateway_with(handler).list_deadlines(year_gte=2025, deadline_gte="2025-10-01T09:00:00+00:00")

        request = seen["request"]
        assert request.method == "GET"
        assert request.url.path == "/api/period-deadline/"
        assert request.url.params["year_gte"] == "2025"
        assert request.url.params["deadline_gte"] == "2025-10-01T09:00:00+00:00"
        assert items[0]["time_period"] == "Fourth Quarter"

    def test_list_deadlines_without_filters(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json=[])

        assert gateway_with(handler).list_deadlines() == []
        assert not seen["request"].url.params

    def test_upsert_deadline_puts_payload(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=seen["body"])

        payload = {"year": 2025, "time_period": "Fourth Quarter", "dead_line": "2026-01-31T23:59:59Z"}
        assert gateway_with(handler).upsert_deadline(payload) == payload
        assert seen == {"method": "PUT", "body": payload}

    def test_upsert_deadline_validation_errors(self):
        """Test field errors become InvalidPeriod with a readable detail."""
        gateway = gateway_with(
            lambda request: httpx.Response(400, json={"year": ["Year cannot be in the past."]})
        )
        with pytest.raises(InvalidPeriod) as exc_info:
            gateway.upsert_deadline({"year": 2020, "time_period": "First Half", "dead_line": "2020-07-31"})
        assert exc_info.value.details["detail"] == "year: Year cannot be in the past."

    def test_upsert_deadline_forbidden(self):
        gateway = gateway_with(lambda request: httpx.Response(403, json={"detail": "SuperAdmin only"}))
        with pytest.raises(PermissionViolation):
            gateway.upsert_deadline({"year": 2025, "time_period": "First Half", "dead_line": "2026-07-31"})


class TestSubmissionService:
    """Test syncing the local store with the gateway."""

    def test_pull_saves_remote_rows(self, store):
        """Test pulled rows become the user's saved, editable dataset."""
        gateway = MagicMock(spec=SubmissionGateway)
        gateway.list_by_period.return_value = [
            {"id": 1, "entity_name": "Alpha", "is_submitted": True, "direct_or_indirect": "Indirect"},
            {"id": 2, "entity_name": "Beta"},
        ]

        result = SubmissionService(store, gateway).pull("neom", "third quarter 2025")

        gateway.list_by_period.assert_called_once_with(2025, "Third Quarter")
        assert result.saved_count == 2
        assert result.dropped_read_only == 0
        alpha, beta = store.load("neom", "Third Quarter 2025")
        assert alpha.id == "1"
        assert alpha.is_submitted is True
        assert alpha.ownership_structure == "In-direct"
        assert store.has_saved("neom", "Third Quarter 2025")

    def test_push_draft_skips_submitted(self, store):
        """Test only unsubmitted rows are pushed."""
        store.save("neom", "Third Quarter 2025", [record("Alpha"), record("Beta", is_submitted=True)])
        gateway = MagicMock(spec=SubmissionGateway)
        gateway.save_draft.side_effect = lambda payload: [dict(item, id=10 + i) for i, item in enumerate(payload)]

        pushed = SubmissionService(store, gateway).push_draft("neom", "Third Quarter 2025")

        payload = gateway.save_draft.call_args.args[0]
        assert [item["entity_name"] for item in payload] == ["Alpha"]
        assert [r.id for r in pushed] == ["10"]

    def test_unsubmit_requires_target(self, store):
        with pytest.raises(ValueError):
            SubmissionService(store, MagicMock(spec=SubmissionGateway)).unsubmit()

    def test_unsubmit_by_id_forwards(self, store):
        gateway = MagicMock(spec=SubmissionGateway)
        gateway.unsubmit_by_id.return_value = {"detail": "ok"}

        assert SubmissionService(store, gateway).unsubmit(record_id=42) == {"detail": "ok"}
        gateway.unsubmit_by_id.assert_called_once_with(42)


def deadline(year, time_period, dead_line):
    return {"year": year, "time_period": time_period, "dead_line": dead_line}


class TestDeadlineService:
    """Test deadline listing, validation and status (clock at 2025-10-01 09:00 UTC)."""

    @pytest.fixture
    def gateway(self):
        return MagicMock(spec=SubmissionGateway)

    @pytest.fixture
    def service(self, gateway, clock):
        return DeadlineService(gateway, clock=clock)

    def test_sorted_by_year_then_period(self, service, gateway):
        gateway.list_deadlines.return_value = [
            deadline(2026, "First Half", "2026-07-31"),
            deadline(2025, "Fourth Quarter", "2026-01-31"),
            deadline(2025, "Third Quarter", "2025-10-31"),
        ]

        labels = [d.label for d in service.deadlines()]

        assert labels == ["Third Quarter 2025", "Fourth Quarter 2025", "First Half 2026"]

    def test_upcoming_filters_from_now(self, service, gateway, clock):
        gateway.list_deadlines.return_value = []
        service.upcoming()
        gateway.list_deadlines.assert_called_once_with(year_gte=None, deadline_gte=clock().isoformat())

    def test_next_deadline_is_earliest_date(self, service, gateway):
        """Test the earliest date wins regardless of period order."""
        gateway.list_deadlines.return_value = [
            deadline(2025, "Third Quarter", "2025-11-15"),
            deadline(2025, "Fourth Quarter", "2025-11-01T12:00:00Z"),
        ]
        assert service.next_deadline() == PeriodDeadline(2025, "Fourth Quarter", "2025-11-01T12:00:00Z")

    def test_no_next_deadline(self, service, gateway):
        gateway.list_deadlines.return_value = []
        assert service.next_deadline() is None

    def test_exists_matches_year(self, service, gateway):
        """Test a later year's deadline does not count for the requested year."""
        gateway.list_deadlines.return_value = [deadline(2026, "First Half", "2026-07-31")]
        assert service.exists(2026, "First Half") is True
        assert service.exists(2025, "First Half") is False

    def test_malformed_api_deadline(self, service, gateway):
        gateway.list_deadlines.return_value = [{"year": 2025}]
        with pytest.raises(StorageFailure):
            service.deadlines()

    def test_validate_accepts_future_deadline(self, service):
        assert service.validate(2025, "Fourth Quarter", "2026-01-31T23:59:59Z") == {}

    def test_validate_reports_each_field(self, service):
        errors = service.validate(2024, "Second Quarter", "2025-09-30")
        assert errors == {
            "year": "Year cannot be in the past",
            "time_period": "Invalid time period selected",
            "dead_line": "Deadline must be in the future",
        }

    def test_validate_limits(self, service):
        errors = service.validate(2036, None, "31/01/2026")
        assert errors["year"] == "Year cannot be more than 10 years in the future"
        assert errors["time_period"] == "Time period is required"
        assert errors["dead_line"] == "Invalid deadline date"

    def test_set_deadline(self, service, gateway):
        """Test a valid deadline is upserted for the parsed period label."""
        gateway.upsert_deadline.side_effect = lambda payload: payload

        saved = service.set_deadline("fourth quarter 2025", "2026-01-31T23:59:59Z")

        gateway.upsert_deadline.assert_called_once_with(deadline(2025, "Fourth Quarter", "2026-01-31T23:59:59Z"))
        assert saved.label == "Fourth Quarter 2025"

    def test_set_invalid_deadline_is_not_sent(self, service, gateway):
        with pytest.raises(InvalidPeriod) as exc_info:
            service.set_deadline("Third Quarter 2025", "2025-09-01")
        assert exc_info.value.details == {"dead_line": "Deadline must be in the future"}
        gateway.upsert_deadline.assert_not_called()

    @pytest.mark.parametrize("dead_line, status, remaining", [
        ("2025-09-30T00:00:00Z", "expired", "Expired"),
        ("2025-10-01T18:00:00Z", "urgent", "Today"),
        ("2025-10-02T10:00:00Z", "urgent", "1 day"),
        ("2025-10-06T09:00:00+00:00", "urgent", "5 days"),
        ("2025-10-21T09:00:00Z", "upcoming", "20 days"),
        ("2026-01-31", "future", "121 days"),
    ])
    def test_status(self, service, dead_line, status, remaining):
        result = service.status(PeriodDeadline(2025, "Fourth Quarter", dead_line))
        assert result.status == status
        assert result.time_remaining == remaining
