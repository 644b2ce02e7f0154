"""Tests for the AI insight collaborator and its fallbacks."""

import asyncio
import json
from datetime import timedelta
from types import SimpleNamespace

import pytest

from fleetflow.config.constants import DISABLED_INSIGHT, FAILED_INSIGHT
from fleetflow.insights.insight_service import (
    InsightService,
    build_insight_payload,
    parse_insight,
)

from conftest import make_trip

GOOD_RESPONSE = {
    "summary": "Fleet utilisation is healthy.",
    "warnings": ["Truck 4 health below 50"],
    "recommendations": [
        {"truckId": "4", "action": "Schedule engine inspection", "impact": "Avoid breakdown"},
        {"action": "Consolidate Lyon runs", "impact": "Lower fuel cost"},
    ],
}


class FakeChatModel:
    """Stands in for a chat model; records the messages it was sent."""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


def _run(coro):
    return asyncio.run(coro)


class TestParseInsight:
    def test_plain_json(self):
        assert parse_insight(json.dumps(GOOD_RESPONSE)) == GOOD_RESPONSE

    def test_markdown_fenced_json(self):
        text = "Here you go:\n```json\n" + json.dumps(GOOD_RESPONSE) + "\n```"
        assert parse_insight(text)["summary"] == GOOD_RESPONSE["summary"]

    def test_missing_truck_id_allowed(self):
        result = parse_insight(json.dumps(GOOD_RESPONSE))
        assert "truckId" not in result["recommendations"][1]

    @pytest.mark.parametrize("bad", [
        "not json",
        json.dumps([1, 2]),
        json.dumps({"summary": 5, "warnings": [], "recommendations": []}),
        json.dumps({"summary": "s", "warnings": "none", "recommendations": []}),
        json.dumps({"summary": "s", "warnings": [], "recommendations": [{"action": "x"}]}),
    ])
    def test_malformed_rejected(self, bad):
        with pytest.raises(ValueError):
            parse_insight(bad)


class TestInsightService:
    def test_disabled_without_key(self):
        service = InsightService(api_key=None)
        assert not service.enabled
        assert _run(service.get_insights({})) == DISABLED_INSIGHT

    def test_disabled_result_is_a_copy(self):
        result = _run(InsightService().get_insights({}))
        result["warnings"].append("mutated")
        assert DISABLED_INSIGHT["warnings"] == ["Missing API configuration"]

    def test_successful_call(self):
        llm = FakeChatModel(content=json.dumps(GOOD_RESPONSE))
        service = InsightService(llm=llm)

        result = _run(service.get_insights({"context": "overview", "timeRange": "7d"}))

        assert result == GOOD_RESPONSE
        assert len(llm.calls) == 1
        human = llm.calls[0][-1].content
        assert '"timeRange": "7d"' in human

    def test_request_error_falls_back(self):
        service = InsightService(llm=FakeChatModel(error=ConnectionError("offline")))
        assert _run(service.get_insights({})) == FAILED_INSIGHT

    def test_malformed_response_falls_back(self):
        service = InsightService(llm=FakeChatModel(content="I think the fleet is fine."))
        assert _run(service.get_insights({})) == FAILED_INSIGHT


class TestPayload:
    def test_payload_shape(self, fleet, now):
        trip = make_trip("t1", timedelta(hours=1))
        payload = build_insight_payload(
            trucks=fleet, drivers=[], revenue_series=[{"name": "Jun", "revenue": 1}],
            context="fleet", time_range="24h", filtered_trips=[trip],
        )
        assert set(payload) == {
            "trucks", "drivers", "revenueSeries", "context", "timeRange", "filteredTrips",
        }
        assert payload["trucks"][0]["plate"] == "FLT-101"
        assert payload["filteredTrips"][0]["costs"]["driverPay"] == 400
        json.dumps(payload)
