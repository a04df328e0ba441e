"""Prompt-based product suggestions and their review queue."""

from .base import SuggestionGenerator, product_facts
from .categorizer import ProductCategorizer
from .description import DescriptionGenerator
from .pricing import PriceOptimizer, analyze_profit_margin, suggest_bundle_price
from .service import SuggestionService
from .templates import TemplateGenerator, detect_product_type

__all__ = [
    "SuggestionGenerator",
    "product_facts",
    "ProductCategorizer",
    "DescriptionGenerator",
    "PriceOptimizer",
    "analyze_profit_margin",
    "suggest_bundle_price",
    "SuggestionService",
    "TemplateGenerator",
    "detect_product_type",
]
