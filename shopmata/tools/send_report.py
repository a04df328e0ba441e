"""Run a report and deliver it in chat or queue it for email."""

import logging
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from ..db import ReportDelivery
from .base import ChatTool, ToolParams

logger = logging.getLogger(__name__)

ReportName = Literal[
    "get_sales_summary",
    "get_sales_report",
    "get_top_products",
    "get_customer_insights",
    "get_inventory_alerts",
    "get_end_of_day_report",
    "get_morning_briefing",
    "channel_performance",
]


class SendReportParams(ToolParams):
    report: Optional[ReportName] = Field(None, description="Which report to run")
    delivery: Literal["chat", "email"] = Field(
        "chat", description="Show the report in chat or email it"
    )
    email: Optional[str] = Field(None, description="Email address, required when delivery is email")
    report_params: Dict[str, Any] = Field(
        default_factory=dict, description="Parameters passed to the report, e.g. {\"period\": \"this_week\"}"
    )


class SendReportTool(ChatTool):
    name = "send_report"
    description = (
        "Run one of the store reports and either show it in chat or email it. Use when the user says "
        "\"email me the weekly report\", \"send the end of day report to ...\" or \"send me a report\"."
    )
    params_model = SendReportParams
    required = ("report",)
    status_message = "Preparing your report..."

    def __init__(self, session_factory, clock=None, registry=None):
        super().__init__(session_factory, clock=clock)
        self.registry = registry

    def run(self, params: SendReportParams, store_id: int) -> Dict[str, Any]:
        if params.delivery == "email" and not (params.email and "@" in params.email):
            return {"error": "An email address is required to email a report."}

        if self.registry is None or not self.registry.has(params.report):
            return {"error": f"Report not available: {params.report}"}

        data = self.registry.execute(params.report, params.report_params, store_id)
        if "error" in data:
            return data

        if params.delivery == "chat":
            result = {"report": params.report, "delivery": "chat", "data": data}
            if "message" in data:
                result["message"] = data["message"]
            return result

        with self.session() as session:
            delivery = ReportDelivery(
                store_id=store_id,
                report=params.report,
                recipient=params.email,
                payload={"params": params.report_params, "data": data},
                status="queued",
            )
            session.add(delivery)
            session.flush()
            delivery_id = delivery.id

        logger.info(f"Queued {params.report} for {params.email} (store {store_id})")
        self.registry.event_logger.info(
            "report.queued",
            f"Queued {params.report} for email",
            {"tool": self.name, "store_id": store_id},
        )
        return {
            "report": params.report,
            "delivery": "email",
            "queued": True,
            "delivery_id": delivery_id,
            "recipient": params.email,
            "message": f"The report will be emailed to {params.email}.",
        }
