"""Category and tag suggestions."""

from typing import List, Optional

from pydantic import Field
from sqlalchemy import select

from ..db import AiSuggestion, Category, session_scope
from .base import ModelReply, SuggestionGenerator, parse_reply

CATEGORY_SCHEMA = {
    "type": "object",
    "properties": {
        "category_id": {"type": "integer"},
        "category_name": {"type": "string"},
        "confidence": {"type": "integer", "minimum": 0, "maximum": 100},
        "reasoning": {"type": "string"},
        "alternatives": {"type": "array", "items": {"type": "integer"}},
    },
    "required": ["category_id", "category_name", "confidence"],
}


class CategoryReply(ModelReply):
    category_id: int
    category_name: str
    confidence: int = Field(ge=0, le=100)
    reasoning: Optional[str] = None
    alternatives: List[int] = Field(default_factory=list)


TAGS_SYSTEM_PROMPT = """You are an expert at generating relevant tags and keywords for e-commerce products.
Generate up to {max_tags} highly relevant tags that will help with search discoverability.

Guidelines:
- Include both broad and specific tags
- Consider search behavior and common search terms
- Include relevant attribute-based tags (color, material, style, etc.)
- Avoid redundant or overly generic tags
- Tags should be lowercase and comma-separated"""


def split_tags(content: str, max_tags: int) -> List[str]:
    """Comma separated model output to a clean, bounded tag list."""
    tags = [tag.strip() for tag in content.split(",")]
    return [tag for tag in tags if tag][:max_tags]


class ProductCategorizer(SuggestionGenerator):

    def categorize(self, product_id: int, store_id: int, platform: Optional[str] = None) -> AiSuggestion:
        """Pick the best of the store's own categories for a product."""
        with session_scope(self.session_factory) as session:
            product = self.load_product(session, product_id, store_id)
            categories = session.scalars(
                select(Category).where(Category.store_id == store_id).order_by(Category.name)
            ).all()
            category_list = "\n".join(f"- ID: {c.id}, Name: {c.name}" for c in categories)
            current_category = product.category.name if product.category else None

        prompt = (
            "Analyze the following product and suggest the most appropriate category "
            "from the available options.\n\n"
            "Product Information:\n"
            f"- Title: {product.title}\n"
            f"- Description: {product.description or ''}\n"
            f"- Brand: {product.brand or ''}\n"
            f"- Current Category: {current_category or ''}\n\n"
            f"Available Categories:\n{category_list}\n\n"
            "Respond with a JSON object containing:\n"
            "- category_id: The ID of the best matching category\n"
            "- category_name: The name of the suggested category\n"
            "- confidence: A score from 0-100 indicating confidence in the suggestion\n"
            "- reasoning: A brief explanation of why this category was chosen\n"
            "- alternatives: An array of up to 3 alternative category IDs that could also fit"
        )

        response = self.ai.generate_json(
            prompt, CATEGORY_SCHEMA, store_id=store_id, feature="categorization", temperature=0.3
        )
        reply = parse_reply(response, CategoryReply)

        return self.save_suggestion(
            product,
            "category",
            reply.model_dump_json(),
            response,
            original_content=current_category,
            platform=platform,
            metadata={
                "suggested_category_id": reply.category_id,
                "suggested_category_name": reply.category_name,
                "confidence": reply.confidence,
                "reasoning": reply.reasoning,
                "alternative_categories": reply.alternatives,
            },
        )

    def suggest_tags(
        self, product_id: int, store_id: int, platform: Optional[str] = None, max_tags: int = 10
    ) -> AiSuggestion:
        with session_scope(self.session_factory) as session:
            product = self.load_product(session, product_id, store_id)
            prompt = f"Generate relevant tags for:\n\nTitle: {product.title}\n"
            if product.description:
                prompt += f"Description: {product.description[:500]}\n"
            if product.brand:
                prompt += f"Brand: {product.brand}\n"
            if product.category:
                prompt += f"Category: {product.category.name}\n"
        if platform:
            prompt += f"\nTarget Platform: {platform}"

        response = self.ai.chat_with_system(
            TAGS_SYSTEM_PROMPT.format(max_tags=max_tags),
            prompt,
            store_id=store_id,
            feature="tag_generation",
            temperature=0.5,
        )
        tags = split_tags(response.content, max_tags)

        return self.save_suggestion(
            product,
            "tags",
            ", ".join(tags),
            response,
            original_content=", ".join(product.tags) if isinstance(product.tags, list) else None,
            platform=platform,
            metadata={"tags": tags, "count": len(tags)},
        )
