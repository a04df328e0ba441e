"""Product copy: descriptions, titles and bullet points."""

from typing import Optional

from ..db import AiSuggestion, session_scope
from .base import SuggestionGenerator, product_facts

LENGTH_GUIDELINES = {
    "short": "50-100 words",
    "medium": "150-250 words",
    "long": "300-500 words",
}

TONE_GUIDELINES = {
    "professional": "professional and informative",
    "casual": "friendly and conversational",
    "luxury": "sophisticated and premium",
    "technical": "detailed and specification-focused",
}

PLATFORM_GUIDELINES = {
    "amazon": (
        "- Format for Amazon: Use HTML formatting where appropriate (<b>, <br>, <ul>/<li>)\n"
        "- Include relevant search terms\n"
        "- Focus on A9 algorithm optimization"
    ),
    "ebay": (
        "- Format for eBay: Use clean HTML formatting\n"
        "- Include item specifics and condition details\n"
        "- Emphasize trust signals and quality"
    ),
    "etsy": (
        "- Format for Etsy: Emphasize handmade/unique aspects\n"
        "- Use storytelling to connect with buyers\n"
        "- Include materials and process details"
    ),
    "shopify": (
        "- Format for Shopify: Use clean, semantic formatting\n"
        "- Focus on brand story and value proposition"
    ),
    "walmart": (
        "- Format for Walmart: Focus on value and quality\n"
        "- Include product specifications\n"
        "- Keep language family-friendly"
    ),
}

TITLE_CHAR_LIMITS = {
    "amazon": 200,
    "ebay": 80,
    "etsy": 140,
    "walmart": 200,
}
DEFAULT_TITLE_CHAR_LIMIT = 150

DESCRIPTION_SYSTEM_PROMPT = """You are an expert e-commerce copywriter specializing in creating compelling product descriptions that drive sales.

Guidelines:
- Write in a {tone} tone
- Target length: {length}
- Focus on benefits, not just features
- Use sensory language where appropriate
- Include relevant keywords naturally for SEO
- Avoid hyperbole and unsubstantiated claims
{platform}

Respond with only the product description, no additional commentary."""

TITLE_SYSTEM_PROMPT = """You are an expert at creating SEO-optimized product titles for e-commerce platforms.

Guidelines:
- Maximum {limit} characters
- Include key product attributes (brand, model, size, color, etc.)
- Front-load important keywords
- Avoid all caps and excessive punctuation
- Do not include price or promotional language
- Make it scannable and informative

Respond with only the product title, no additional commentary."""

BULLETS_SYSTEM_PROMPT = (
    "You are an expert e-commerce copywriter specializing in creating compelling bullet points for "
    "product listings. Generate exactly {count} bullet points that highlight key features and benefits. "
    "Each bullet point should start with a capital letter and be concise yet informative."
)


def title_char_limit(platform: Optional[str]) -> int:
    return TITLE_CHAR_LIMITS.get(platform or "", DEFAULT_TITLE_CHAR_LIMIT)


class DescriptionGenerator(SuggestionGenerator):
    """Writes listing copy for a product and stores it as a pending suggestion."""

    def generate(
        self,
        product_id: int,
        store_id: int,
        platform: Optional[str] = None,
        tone: str = "professional",
        length: str = "medium",
    ) -> AiSuggestion:
        with session_scope(self.session_factory) as session:
            product = self.load_product(session, product_id, store_id)
            user_prompt = "Write a compelling product description for the following product:\n\n"
            user_prompt += product_facts(product)

        system_prompt = DESCRIPTION_SYSTEM_PROMPT.format(
            tone=TONE_GUIDELINES.get(tone, TONE_GUIDELINES["professional"]),
            length=LENGTH_GUIDELINES.get(length, LENGTH_GUIDELINES["medium"]),
            platform=PLATFORM_GUIDELINES.get(platform or "", ""),
        )

        response = self.ai.chat_with_system(
            system_prompt, user_prompt, store_id=store_id, feature="description_generation", temperature=0.7
        )

        return self.save_suggestion(
            product,
            "description",
            response.content.strip(),
            response,
            original_content=product.description,
            platform=platform,
            metadata={"tone": tone, "length": length},
        )

    def generate_title(self, product_id: int, store_id: int, platform: Optional[str] = None) -> AiSuggestion:
        limit = title_char_limit(platform)

        with session_scope(self.session_factory) as session:
            product = self.load_product(session, product_id, store_id)
            user_prompt = "Create an optimized product title for:\n\n"
            user_prompt += product_facts(product, include_description=False).replace("Title:", "Current Title:", 1)
        if platform:
            user_prompt += f"\nTarget Platform: {platform}"

        response = self.ai.chat_with_system(
            TITLE_SYSTEM_PROMPT.format(limit=limit),
            user_prompt,
            store_id=store_id,
            feature="title_generation",
            temperature=0.6,
            max_tokens=256,
        )

        title = response.content.strip().strip('"')
        return self.save_suggestion(
            product,
            "title",
            title,
            response,
            original_content=product.title,
            platform=platform,
            metadata={"char_limit": limit, "within_limit": len(title) <= limit},
        )

    def generate_bullet_points(
        self, product_id: int, store_id: int, platform: str = "amazon", count: int = 5
    ) -> AiSuggestion:
        with session_scope(self.session_factory) as session:
            product = self.load_product(session, product_id, store_id)
            user_prompt = "Create compelling bullet points for:\n\n" + product_facts(product)

        response = self.ai.chat_with_system(
            BULLETS_SYSTEM_PROMPT.format(count=count),
            user_prompt,
            store_id=store_id,
            feature="bullet_points_generation",
            temperature=0.6,
        )

        return self.save_suggestion(
            product,
            "bullet_points",
            response.content.strip(),
            response,
            platform=platform,
            metadata={"count": count},
        )
