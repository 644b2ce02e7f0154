"""Narrative fleet insights from a chat model.

The service never raises to its caller. Without an API key it returns a static
"disabled" insight; any request or parsing failure returns a static fallback.
There is no retry, backoff or cancellation.
"""

import copy
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.prompts import ChatPromptTemplate
from langchain_groq import ChatGroq

from fleetflow.config.constants import (
    DEFAULT_INSIGHT_MODEL,
    DISABLED_INSIGHT,
    FAILED_INSIGHT,
    INSIGHT_TEMPERATURE,
)
from fleetflow.fleet.entities import Driver, Trip, Truck

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a fleet analyst advising a logistics manager. "
    "Analyze the fleet data and provide strategic recommendations.\n"
    "Focus on: underperforming trucks, high-cost routes, and maintenance risks.\n\n"
    "IMPORTANT: Final response MUST be JSON exactly in this format:\n"
    "{{\n"
    "  \"summary\": \"One paragraph overview.\",\n"
    "  \"warnings\": [\"Short warning\", ...],\n"
    "  \"recommendations\": [\n"
    "    {{\"truckId\": \"optional truck id\", \"action\": \"What to do\", \"impact\": \"Expected effect\"}}\n"
    "  ]\n"
    "}}"
)


def build_insight_payload(
    trucks: Sequence[Truck],
    drivers: Sequence[Driver],
    revenue_series: List[Dict],
    context: str,
    time_range: str,
    filtered_trips: Sequence[Trip],
) -> Dict[str, Any]:
    """Bundle the dashboard state sent to the model."""
    return {
        "trucks": [t.to_dict() for t in trucks],
        "drivers": [d.to_dict() for d in drivers],
        "revenueSeries": revenue_series,
        "context": context,
        "timeRange": time_range,
        "filteredTrips": [t.to_dict() for t in filtered_trips],
    }


def _strip_code_fence(text: str) -> str:
    # Models sometimes wrap JSON in markdown blocks
    if "```json" in text:
        return text.split("```json")[1].split("```")[0].strip()
    if "```" in text:
        return text.split("```")[1].split("```")[0].strip()
    return text.strip()


def parse_insight(text: str) -> Dict[str, Any]:
    """Parse and validate a model response.

    Raises:
        ValueError: The response is not JSON or does not have the insight shape.
    """
    data = json.loads(_strip_code_fence(text))
    if not isinstance(data, dict):
        raise ValueError("insight response is not a JSON object")

    summary = data.get("summary")
    warnings = data.get("warnings")
    recommendations = data.get("recommendations")

    if not isinstance(summary, str):
        raise ValueError("insight 'summary' must be a string")
    if not isinstance(warnings, list) or not all(isinstance(w, str) for w in warnings):
        raise ValueError("insight 'warnings' must be a list of strings")
    if not isinstance(recommendations, list):
        raise ValueError("insight 'recommendations' must be a list")

    cleaned = []
    for rec in recommendations:
        if not isinstance(rec, dict) or not isinstance(rec.get("action"), str) \
                or not isinstance(rec.get("impact"), str):
            raise ValueError(f"malformed recommendation: {rec!r}")
        item = {"action": rec["action"], "impact": rec["impact"]}
        if rec.get("truckId"):
            item["truckId"] = str(rec["truckId"])
        cleaned.append(item)

    return {"summary": summary, "warnings": warnings, "recommendations": cleaned}


class InsightService:
    """Asks a chat model for a summary, warnings and recommendations."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_INSIGHT_MODEL,
        llm=None,
    ):
        self.llm = llm
        if self.llm is None and api_key:
            self.llm = ChatGroq(
                temperature=INSIGHT_TEMPERATURE,
                model=model,
                api_key=api_key,
            )

        self.prompt = ChatPromptTemplate.from_messages([
            ("system", SYSTEM_PROMPT),
            ("human", "Data: {fleet_data}"),
        ])

    @property
    def enabled(self) -> bool:
        return self.llm is not None

    async def get_insights(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.enabled:
            logger.warning("No API key configured. AI insights are disabled.")
            return copy.deepcopy(DISABLED_INSIGHT)

        try:
            messages = self.prompt.format_messages(fleet_data=json.dumps(payload, default=str))
            response = await self.llm.ainvoke(messages)
            return parse_insight(response.content)
        except Exception as e:
            logger.error(f"AI insight request failed: {e}")
            return copy.deepcopy(FAILED_INSIGHT)
