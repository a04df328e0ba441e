"""Precious metal valuation and buy-side negotiation tools."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..db import MetalPrice, Product
from ..formatting import format_money
from .base import ChatTool, ToolParams

MetalType = Literal[
    "gold_10k", "gold_14k", "gold_18k", "gold_22k", "gold_24k", "silver", "platinum", "palladium"
]

GRAMS_PER_UNIT = {
    "grams": 1.0,
    "dwt": MetalPrice.GRAMS_PER_DWT,
    "troy_oz": MetalPrice.GRAMS_PER_TROY_OUNCE,
}

OFFER_PERCENTAGES = (60, 65, 70, 75)

PAYOUTS = {
    "excellent": (0.60, 0.65, 0.70),
    "good": (0.55, 0.60, 0.65),
    "fair": (0.50, 0.55, 0.60),
    "poor": (0.45, 0.50, 0.55),
}
STONE_DEDUCTION = 0.05


def metal_value(session: Session, metal_type: str, weight_grams: float) -> Dict[str, Any]:
    """
    Melt value of ``weight_grams`` of ``metal_type`` at the latest spot price.

    Returns a dict with an ``error`` key when no spot price is recorded.
    """
    purity = MetalPrice.PURITY_RATIOS.get(metal_type, 1.0)
    price = MetalPrice.latest(session, MetalPrice.base_metal(metal_type))
    if price is None:
        return {
            "error": "Metal prices not available",
            "metal_type": metal_type,
            "weight_grams": weight_grams,
        }

    pure_grams = weight_grams * purity
    spot_value = pure_grams * price.price_per_gram
    return {
        "metal_type": metal_type,
        "weight_grams": round(weight_grams, 2),
        "weight_dwt": round(weight_grams / MetalPrice.GRAMS_PER_DWT, 2),
        "purity_ratio": purity,
        "pure_metal_grams": round(pure_grams, 2),
        "spot_price_per_gram": round(price.price_per_gram, 2),
        "spot_value": round(spot_value, 2),
        "spot_value_formatted": format_money(spot_value),
    }


class MetalCalculatorParams(ToolParams):
    metal_type: Optional[MetalType] = Field(None, description="Type and karat of precious metal")
    weight: Optional[float] = Field(None, gt=0, description="Weight of the item")
    unit: Literal["grams", "dwt", "troy_oz"] = Field(
        "grams", description="Unit of the weight: grams, pennyweight (dwt) or troy ounces"
    )


class MetalCalculatorTool(ChatTool):
    name = "calculate_metal_value"
    description = (
        "Calculate the melt value of precious metal from its type and weight using today's spot "
        "price. Use when the user asks \"what is this worth in gold\", \"melt value\" or gives a "
        "karat and weight. Returns pure metal content, spot value and typical offer amounts."
    )
    params_model = MetalCalculatorParams
    required = ("metal_type", "weight")
    status_message = "Calculating metal value..."

    def run(self, params: MetalCalculatorParams, store_id: int) -> Dict[str, Any]:
        weight_grams = params.weight * GRAMS_PER_UNIT[params.unit]

        with self.session() as session:
            value = metal_value(session, params.metal_type, weight_grams)

        if "error" in value:
            return value

        spot_value = value["spot_value"]
        value.update({
            "weight": params.weight,
            "unit": params.unit,
            "pure_metal_content": f"{value['pure_metal_grams']:.2f}g",
            "offers": {
                f"{percent}%": {
                    "amount": round(spot_value * percent / 100, 2),
                    "amount_formatted": format_money(spot_value * percent / 100),
                }
                for percent in OFFER_PERCENTAGES
            },
        })
        return value


class NegotiationParams(ToolParams):
    metal_type: Optional[MetalType] = Field(None, description="Type of precious metal")
    weight_grams: Optional[float] = Field(None, gt=0, description="Weight in grams")
    weight_dwt: Optional[float] = Field(None, gt=0, description="Weight in pennyweight (DWT)")
    item_type: str = Field("jewelry", description="Type of item (e.g., chain, ring, bracelet, watch)")
    condition: Literal["excellent", "good", "fair", "poor"] = Field("good", description="Condition of the item")
    has_stones: bool = Field(False, description="Whether item has gemstones")
    brand: Optional[str] = Field(None, description="Brand name if applicable (e.g., Rolex, Cartier)")
    target_margin: float = Field(40, ge=0, lt=100, description="Target profit margin percentage (default 40)")


class NegotiationCoachTool(ChatTool):
    name = "get_negotiation_advice"
    description = (
        "Get negotiation advice for buying items from customers. Use when user asks \"what should I "
        "offer\", \"help me price this\", \"negotiation help\", or describes an item they want to buy. "
        "Calculates fair offer based on metal content, market prices, and margins."
    )
    params_model = NegotiationParams
    status_message = "Working out an offer..."

    def run(self, params: NegotiationParams, store_id: int) -> Dict[str, Any]:
        weight_grams = params.weight_grams
        if not weight_grams and params.weight_dwt:
            weight_grams = params.weight_dwt * MetalPrice.GRAMS_PER_DWT

        result = {
            "item_description": self._describe(params, weight_grams),
            "calculations": {},
            "offer_range": {},
            "similar_sales": [],
            "negotiation_tips": [],
        }

        with self.session() as session:
            if params.metal_type and weight_grams:
                value = metal_value(session, params.metal_type, weight_grams)
                result["calculations"]["metal_value"] = value

                if "error" not in value:
                    low, recommended, high = self._payouts(params.condition, params.has_stones)
                    spot_value = value["spot_value"]
                    result["offer_range"] = {
                        label: {
                            "amount": round(spot_value * ratio, 2),
                            "amount_formatted": format_money(spot_value * ratio),
                            "payout_percent": round(ratio * 100),
                        }
                        for label, ratio in (("low", low), ("recommended", recommended), ("high", high))
                    }

                    expected_retail = spot_value * recommended / (1 - params.target_margin / 100)
                    result["expected_retail"] = {
                        "amount": round(expected_retail, 2),
                        "amount_formatted": format_money(expected_retail),
                        "margin_percent": params.target_margin,
                    }

            result["similar_sales"] = self._similar_sales(session, store_id, params)

        result["negotiation_tips"] = self._tips(params)
        if not result["offer_range"]:
            result["message"] = "Provide a metal type and weight to calculate an offer."
        return result

    @staticmethod
    def _payouts(condition: str, has_stones: bool):
        ratios = PAYOUTS.get(condition, PAYOUTS["good"])
        if has_stones:
            ratios = tuple(round(r - STONE_DEDUCTION, 2) for r in ratios)
        return ratios

    def _similar_sales(self, session: Session, store_id: int, params: NegotiationParams) -> List[Dict[str, Any]]:
        query = select(Product).where(
            Product.store_id == store_id,
            Product.status == Product.STATUS_SOLD,
            Product.price > 0,
        )

        if params.metal_type:
            base = MetalPrice.base_metal(params.metal_type)
            query = query.where(or_(Product.title.ilike(f"%{base}%"), Product.title.ilike(f"%{params.metal_type}%")))
        if params.item_type:
            query = query.where(Product.title.ilike(f"%{params.item_type}%"))
        if params.brand:
            query = query.where(Product.title.ilike(f"%{params.brand}%"))

        products = session.scalars(query.order_by(Product.updated_at.desc()).limit(5)).all()

        return [
            {
                "title": product.title,
                "sold_price": round(product.price, 2),
                "sold_price_formatted": format_money(product.price),
                "cost": round(product.cost, 2) if product.cost else None,
                "margin": round((product.price - product.cost) / product.price * 100) if product.cost else None,
                "sold_date": f"{product.updated_at:%b} {product.updated_at.day}",
            }
            for product in products
        ]

    @staticmethod
    def _tips(params: NegotiationParams) -> List[str]:
        tips = []

        if params.metal_type and params.metal_type.startswith("gold"):
            tips.append("Test the gold with acid to verify karat")
            tips.append("Check for stamps/hallmarks inside the piece")

        if params.has_stones:
            tips.append("Stones need separate evaluation - offer based on metal only, stones are bonus")
            tips.append("Check if stones are real or synthetic")

        if params.brand:
            tips.append(f"Verify authenticity - {params.brand} fakes are common")
            tips.append("Brand premium applies if authentic with box/papers")

        if params.condition == "poor":
            tips.append("Factor in repair/cleaning costs")
            tips.append("May need to sell as scrap if too damaged")

        if params.item_type == "watch":
            tips.append("Check if watch runs and keeps time")
            tips.append("Look up recent eBay sold listings for this model")

        tips.append("Start with the low offer and negotiate up")
        tips.append("Ask what they're hoping to get - they might be lower than you expected")
        return tips

    @staticmethod
    def _describe(params: NegotiationParams, weight_grams: Optional[float]) -> str:
        parts = []
        if params.brand:
            parts.append(params.brand)
        if params.metal_type:
            parts.append(params.metal_type.replace("_", " "))
        if params.item_type:
            parts.append(params.item_type)
        if weight_grams:
            parts.append(f"{round(weight_grams, 1)}g")
        return " ".join(parts) or "Item"
