"""Price suggestions and margin analysis."""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import Field

from ..db import AiSuggestion, Product, session_scope
from .base import ModelReply, SuggestionGenerator, parse_reply, product_facts

STRATEGY_GUIDELINES = {
    "competitive": "Prioritize competitive positioning, willing to sacrifice some margin for market share.",
    "premium": "Position as a premium product, emphasize value and quality justification for higher prices.",
    "value": "Focus on value proposition, competitive pricing while maintaining reasonable margins.",
    "balanced": "Balance between competitiveness and profitability.",
}

PRICE_SCHEMA = {
    "type": "object",
    "properties": {
        "suggested_price": {"type": "number"},
        "min_price": {"type": "number"},
        "max_price": {"type": "number"},
        "confidence": {"type": "integer", "minimum": 0, "maximum": 100},
        "reasoning": {"type": "string"},
    },
    "required": ["suggested_price", "confidence"],
}

SALE_PRICE_SCHEMA = {
    "type": "object",
    "properties": {
        "sale_price": {"type": "number"},
        "discount_percent": {"type": "number"},
        "projected_margin": {"type": "number"},
        "reasoning": {"type": "string"},
    },
    "required": ["sale_price", "discount_percent"],
}

SALE_PRICE_SYSTEM_PROMPT = (
    "You are a pricing strategist helping determine optimal sale prices.\n"
    "Consider the cost, current price, target margin, and market factors.\n"
    "Suggest a sale price that maintains profitability while being attractive to buyers."
)


class PriceReply(ModelReply):
    suggested_price: float = Field(ge=0)
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    confidence: int = Field(ge=0, le=100)
    reasoning: Optional[str] = None


class SalePriceReply(ModelReply):
    sale_price: float = Field(ge=0)
    discount_percent: float
    projected_margin: Optional[float] = None
    reasoning: Optional[str] = None


MARGIN_HEALTH = (
    (50, "excellent"),
    (35, "good"),
    (20, "acceptable"),
    (10, "low"),
    (0, "critical"),
)


def margin_percent(price: float, cost: float) -> float:
    if price <= 0:
        return 0
    return round((price - cost) / price * 100, 2)


def margin_health(percent: float) -> str:
    for threshold, label in MARGIN_HEALTH:
        if percent >= threshold:
            return label
    return "negative"


def analyze_profit_margin(price: Optional[float], cost: Optional[float], platform_fee_percent: float = 0) -> Dict[str, Any]:
    """Margin of a price/cost pair, net of an optional platform fee."""
    price = price or 0
    cost = cost or 0
    if price <= 0 or cost <= 0:
        return {
            "margin_percent": 0,
            "margin_amount": 0,
            "analysis": "Unable to calculate margin - missing price or cost data",
        }

    gross = (price - cost) / price * 100
    net = gross - platform_fee_percent
    return {
        "price": price,
        "cost": cost,
        "margin_amount": round(price - cost, 2),
        "margin_percent": round(gross, 2),
        "platform_fee_percent": platform_fee_percent,
        "net_margin_percent": round(net, 2),
        "health": margin_health(net),
    }


def suggest_bundle_price(products: Sequence[Product], discount_percent: float = 15) -> Dict[str, Any]:
    """Bundle price at a flat discount off the sum of individual prices."""
    total_price = sum(p.price or 0 for p in products)
    total_cost = sum(p.cost or 0 for p in products)
    bundle_price = total_price * (1 - discount_percent / 100)
    bundle_margin = (bundle_price - total_cost) / bundle_price * 100 if total_cost > 0 and bundle_price > 0 else 0

    return {
        "products": [
            {"id": p.id, "title": p.title, "price": p.price or 0, "cost": p.cost or 0}
            for p in products
        ],
        "total_individual_price": round(total_price, 2),
        "total_cost": round(total_cost, 2),
        "suggested_bundle_price": round(bundle_price, 2),
        "bundle_discount_percent": discount_percent,
        "bundle_margin_percent": round(bundle_margin, 2),
        "savings_amount": round(total_price - bundle_price, 2),
    }


class PriceOptimizer(SuggestionGenerator):
    """Asks the model for a price or sale price and records it as a suggestion."""

    def optimize(
        self,
        product_id: int,
        store_id: int,
        platform: Optional[str] = None,
        strategy: str = "balanced",
        competitor_prices: Optional[List[Dict[str, Any]]] = None,
    ) -> AiSuggestion:
        competitor_prices = competitor_prices or []

        with session_scope(self.session_factory) as session:
            product = self.load_product(session, product_id, store_id)
            facts = product_facts(product, include_description=False)

        current_price = product.price or 0
        cost = product.cost or 0

        prompt = "Analyze the following product and suggest an optimal price.\n\nProduct Information:\n"
        prompt += facts
        prompt += f"Cost: ${cost:.2f}\nCurrent Margin: {margin_percent(current_price, cost)}%\n"
        if competitor_prices:
            prompt += "\nCompetitor Prices:\n"
            for competitor in competitor_prices:
                prompt += f"- {competitor.get('name', 'Competitor')}: ${competitor.get('price')}\n"
            average = sum(float(c.get("price") or 0) for c in competitor_prices) / len(competitor_prices)
            prompt += f"Average competitor price: ${average:.2f}\n"
        if platform:
            prompt += f"\nPlatform: {platform}"
        prompt += f"\nPricing Strategy: {STRATEGY_GUIDELINES.get(strategy, STRATEGY_GUIDELINES['balanced'])}"

        response = self.ai.generate_json(
            prompt, PRICE_SCHEMA, store_id=store_id, feature="price_optimization", temperature=0.4
        )
        reply = parse_reply(response, PriceReply)

        change = 0
        if current_price > 0:
            change = round((reply.suggested_price - current_price) / current_price * 100, 2)

        return self.save_suggestion(
            product,
            "price",
            reply.model_dump_json(),
            response,
            original_content=str(current_price),
            platform=platform,
            metadata={
                "current_price": current_price,
                "suggested_price": reply.suggested_price,
                "min_price": reply.min_price,
                "max_price": reply.max_price,
                "confidence": reply.confidence,
                "reasoning": reply.reasoning,
                "price_change_percent": change,
                "strategy": strategy,
                "competitor_count": len(competitor_prices),
            },
        )

    def suggest_sale_price(
        self,
        product_id: int,
        store_id: int,
        discount_percent: Optional[float] = None,
        target_margin: float = 20,
        platform: Optional[str] = None,
    ) -> AiSuggestion:
        with session_scope(self.session_factory) as session:
            product = self.load_product(session, product_id, store_id)

        current_price = product.price or 0
        cost = product.cost or 0
        discount_info = (
            f"Requested discount percentage: {discount_percent}%"
            if discount_percent
            else "No specific discount percentage requested"
        )

        prompt = (
            "Suggest a sale price for the following product:\n\n"
            f"Product: {product.title}\n"
            f"Current Price: ${current_price:.2f}\n"
            f"Cost: ${cost:.2f}\n"
            f"Current Margin: {margin_percent(current_price, cost)}%\n"
            f"Target Minimum Margin: {target_margin}%\n"
            f"{discount_info}"
        )

        response = self.ai.generate_json(
            prompt,
            SALE_PRICE_SCHEMA,
            store_id=store_id,
            feature="sale_price_suggestion",
            system=SALE_PRICE_SYSTEM_PROMPT,
            temperature=0.4,
        )
        reply = parse_reply(response, SalePriceReply)

        return self.save_suggestion(
            product,
            "sale_price",
            reply.model_dump_json(),
            response,
            original_content=str(current_price),
            platform=platform,
            metadata={
                "current_price": current_price,
                "suggested_sale_price": reply.sale_price,
                "discount_percent": reply.discount_percent,
                "projected_margin": reply.projected_margin,
                "reasoning": reply.reasoning,
            },
        )
