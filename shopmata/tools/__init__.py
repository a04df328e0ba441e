"""Chat assistant tools."""

from .base import ChatTool, NoParams, ToolParams, params_schema
from .channels import ChannelPerformanceTool
from .customers import CustomerInsightsTool, CustomerIntelligenceTool, customer_tier
from .daily import EndOfDayTool, MorningBriefingTool
from .inventory import InventoryAlertsTool
from .metals import MetalCalculatorTool, NegotiationCoachTool
from .registry import ToolRegistry, create_default_registry
from .sales import SalesReportTool, SalesSummaryTool
from .send_report import SendReportTool
from .top_products import TopProductsTool

# Registered in this order; send_report is added last since it dispatches to the others
BUILTIN_TOOLS = (
    SalesSummaryTool,
    SalesReportTool,
    TopProductsTool,
    CustomerInsightsTool,
    CustomerIntelligenceTool,
    InventoryAlertsTool,
    MetalCalculatorTool,
    NegotiationCoachTool,
    EndOfDayTool,
    MorningBriefingTool,
    ChannelPerformanceTool,
)

__all__ = [
    "ChatTool",
    "ToolParams",
    "NoParams",
    "params_schema",
    "ToolRegistry",
    "create_default_registry",
    "BUILTIN_TOOLS",
    "SalesSummaryTool",
    "SalesReportTool",
    "TopProductsTool",
    "CustomerInsightsTool",
    "CustomerIntelligenceTool",
    "customer_tier",
    "InventoryAlertsTool",
    "MetalCalculatorTool",
    "NegotiationCoachTool",
    "EndOfDayTool",
    "MorningBriefingTool",
    "ChannelPerformanceTool",
    "SendReportTool",
]
