"""
Product template generation.

A seller describes what they sell ("vintage designer handbags") and the model
proposes a category, a template and its fields with per-platform mappings.
Without AI credentials a built-in template is picked by keyword instead.
"""

import json
import logging
import re
from typing import Any, Dict, List, Tuple

from ..db import Category, ProductTemplate, ProductTemplateField, session_scope
from ..exceptions import AIResponseError
from .base import SuggestionGenerator

logger = logging.getLogger(__name__)

SUPPORTED_PLATFORMS = ("eBay", "Amazon", "Etsy", "Shopify", "Walmart")

PLATFORM_REQUIREMENTS = {
    "jewelry": {
        "ebay": ["Metal", "Metal Purity", "Main Stone", "Total Carat Weight", "Ring Size", "Chain Length", "Brand", "Style", "Type"],
        "amazon": ["metal-type", "metal-stamp", "gem-type", "total-carat-weight", "ring-size", "chain-length", "brand", "item-shape"],
        "etsy": ["primary_material", "secondary_material", "gemstone", "occasion", "style"],
    },
    "handbags": {
        "ebay": ["Brand", "Material", "Color", "Style", "Size", "Closure Type", "Features"],
        "amazon": ["brand", "material-type", "color", "strap-type", "closure-type", "number-of-pockets", "pattern"],
        "etsy": ["primary_material", "color", "occasion", "style", "strap_style"],
    },
    "clothing": {
        "ebay": ["Brand", "Size", "Color", "Material", "Style", "Neckline", "Sleeve Length", "Pattern", "Occasion"],
        "amazon": ["brand", "size", "color", "material-type", "style", "neckline", "sleeve-type", "pattern-type", "occasion-type"],
        "etsy": ["primary_material", "color", "occasion", "style", "size"],
    },
    "electronics": {
        "ebay": ["Brand", "Model", "MPN", "Type", "Connectivity", "Color", "Storage Capacity", "Screen Size"],
        "amazon": ["brand", "model-number", "part-number", "product-type", "connectivity-type", "color", "memory-storage-capacity", "display-size"],
        "etsy": ["brand", "color"],
    },
    "watches": {
        "ebay": ["Brand", "Model", "Case Material", "Band Material", "Movement", "Display", "Case Size", "Water Resistance", "Features"],
        "amazon": ["brand", "model-number", "case-material-type", "band-material-type", "movement-type", "display-type", "case-diameter", "water-resistance-depth"],
        "etsy": ["primary_material", "secondary_material", "style", "occasion"],
    },
    "home_decor": {
        "ebay": ["Brand", "Material", "Color", "Style", "Room", "Theme", "Features"],
        "amazon": ["brand", "material-type", "color", "style", "room-type", "theme", "pattern"],
        "etsy": ["primary_material", "color", "room", "style", "occasion"],
    },
}

SYSTEM_PROMPT = """You are an expert e-commerce product data specialist. Your job is to help sellers create comprehensive product templates that will work across multiple selling platforms.

SUPPORTED PLATFORMS: {platforms}

PLATFORM FIELD REQUIREMENTS BY PRODUCT TYPE:
{requirements}

When a user describes what they want to sell, you must:
1. Identify the product type/category
2. Create a comprehensive template with ALL fields needed to list successfully on major platforms
3. Include both required and recommended fields
4. Use appropriate field types (text, number, select, etc.)
5. Provide predefined options for fields where applicable
6. Group related fields together (e.g., "dimensions" group for length/width/height)
7. Map each field to the corresponding platform fields

RESPONSE FORMAT (JSON):
{{
  "category": {{"name": "Category Name", "slug": "category-slug", "description": "Brief category description"}},
  "template": {{"name": "Template Name", "description": "Template description"}},
  "fields": [
    {{
      "name": "field_name",
      "canonical_name": "standard_field_identifier",
      "label": "Field Label",
      "type": "text|textarea|number|select|checkbox|radio|date",
      "placeholder": "Placeholder text",
      "help_text": "Help text for the user",
      "is_required": true,
      "is_searchable": false,
      "is_filterable": false,
      "group_name": "group_name_if_grouped",
      "width_class": "full|half|third|quarter",
      "options": [{{"label": "Option Label", "value": "option_value"}}],
      "platform_mappings": [
        {{"platform": "ebay|amazon|etsy|shopify", "field_name": "Platform's Field Name", "is_required": true, "is_recommended": false}}
      ]
    }}
  ]
}}

IMPORTANT GUIDELINES:
- Always include Brand as a field
- Include Condition field for used/new items
- For items with sizes, include a size field with appropriate options
- For items with colors, include a color field
- Group measurement fields together (dimensions, weight)
- Include unit fields alongside measurement fields
- Make commonly filtered attributes filterable
- Make commonly searched attributes searchable"""

USER_PROMPT = (
    "I want to sell: {prompt}\n\n"
    "Please generate a comprehensive product template that will allow me to list these products "
    "on all major selling platforms. Return ONLY valid JSON, no additional text."
)

REQUIRED_SECTIONS = ("category", "template", "fields")

# Checked in order, first match wins.
PRODUCT_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("jewelry", ("jewelry", "ring", "necklace", "bracelet")),
    ("handbags", ("handbag", "purse", "bag")),
    ("clothing", ("clothing", "shirt", "dress", "pants")),
    ("watches", ("watch",)),
    ("electronics", ("electronic", "phone", "laptop", "computer")),
]


def slugify(value: str, separator: str = "-") -> str:
    slug = re.sub(r"[^a-z0-9]+", separator, value.lower())
    return slug.strip(separator)


def detect_product_type(prompt: str) -> str:
    """Keyword match against the seller's description, ``general`` when nothing matches."""
    prompt = prompt.lower()
    for product_type, keywords in PRODUCT_KEYWORDS:
        if any(keyword in prompt for keyword in keywords):
            return product_type
    return "general"


def _options(*values: Tuple[str, str]) -> List[Dict[str, str]]:
    return [{"label": label, "value": value} for label, value in values]


def _field(name: str, label: str, type: str = "text", **extra: Any) -> Dict[str, Any]:
    field = {"name": name, "canonical_name": extra.pop("canonical_name", name), "label": label, "type": type}
    field.update(extra)
    return field


UNIT_LENGTH = _options(("inches", "in"), ("cm", "cm"))

BUILTIN_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "jewelry": {
        "category": {"name": "Jewelry", "slug": "jewelry", "description": "Jewelry items including rings, necklaces, bracelets, and earrings"},
        "template": {"name": "Jewelry", "description": "Comprehensive template for jewelry items"},
        "fields": [
            _field("brand", "Brand", is_filterable=True, is_searchable=True, width_class="half"),
            _field("condition", "Condition", "select", is_required=True, is_filterable=True, width_class="half",
                   options=_options(("New", "new"), ("Pre-owned", "pre_owned"), ("Vintage", "vintage"))),
            _field("metal_type", "Metal Type", "select", is_required=True, is_filterable=True, is_searchable=True, width_class="half",
                   options=_options(("Gold", "gold"), ("Silver", "silver"), ("Platinum", "platinum"), ("Palladium", "palladium"),
                                    ("Titanium", "titanium"), ("Stainless Steel", "stainless_steel"))),
            _field("metal_purity", "Metal Purity", "select", is_filterable=True, width_class="half",
                   options=_options(("24K (99.9%)", "24k"), ("22K (91.7%)", "22k"), ("18K (75%)", "18k"), ("14K (58.3%)", "14k"),
                                    ("10K (41.7%)", "10k"), ("925 Sterling", "925"), ("950 Platinum", "950"))),
            _field("gemstone_type", "Gemstone Type", "select", is_filterable=True, is_searchable=True, width_class="half",
                   options=_options(("Diamond", "diamond"), ("Ruby", "ruby"), ("Sapphire", "sapphire"), ("Emerald", "emerald"),
                                    ("Pearl", "pearl"), ("Opal", "opal"), ("Amethyst", "amethyst"), ("None", "none"))),
            _field("total_carat_weight", "Total Carat Weight", "number", placeholder="0.00",
                   help_text="Combined carat weight of all stones", is_filterable=True, width_class="half"),
            _field("ring_size", "Ring Size", placeholder="e.g. 7, 7.5", help_text="US ring size (leave blank if not a ring)",
                   is_filterable=True, width_class="half"),
            _field("chain_length", "Chain Length", "number", placeholder="0", group_name="chain_length", width_class="third"),
            _field("chain_length_unit", "Unit", "select", group_name="chain_length", width_class="third", options=UNIT_LENGTH),
            _field("metal_weight", "Metal Weight", "number", placeholder="0.00", group_name="metal_weight", width_class="third"),
            _field("metal_weight_unit", "Unit", "select", group_name="metal_weight", width_class="third",
                   options=_options(("grams", "g"), ("oz", "oz"), ("dwt", "dwt"))),
            _field("certificate_number", "Certificate Number", placeholder="GIA, AGS, etc.",
                   help_text="Grading certificate number if available", width_class="half"),
        ],
    },
    "handbags": {
        "category": {"name": "Handbags", "slug": "handbags", "description": "Handbags, purses, wallets, and leather goods"},
        "template": {"name": "Handbags & Accessories", "description": "Comprehensive template for handbags and accessories"},
        "fields": [
            _field("brand", "Brand", is_required=True, is_filterable=True, is_searchable=True, width_class="half"),
            _field("condition", "Condition", "select", is_required=True, is_filterable=True, width_class="half",
                   options=_options(("New with Tags", "new_with_tags"), ("New without Tags", "new_without_tags"),
                                    ("Pre-owned", "pre_owned"), ("Vintage", "vintage"))),
            _field("material", "Material", "select", is_required=True, is_filterable=True, is_searchable=True, width_class="half",
                   options=_options(("Genuine Leather", "leather"), ("Exotic Leather", "exotic_leather"), ("Canvas", "canvas"),
                                    ("Nylon", "nylon"), ("Suede", "suede"), ("Vegan Leather", "vegan_leather"), ("Fabric", "fabric"))),
            _field("color", "Color", placeholder="e.g. Black, Navy, Cognac", is_filterable=True, is_searchable=True, width_class="half"),
            _field("bag_length", "Length", "number", canonical_name="length", group_name="dimensions", width_class="quarter"),
            _field("bag_width", "Width", "number", canonical_name="width", group_name="dimensions", width_class="quarter"),
            _field("bag_height", "Height", "number", canonical_name="height", group_name="dimensions", width_class="quarter"),
            _field("dimension_unit", "Unit", "select", group_name="dimensions", width_class="quarter", options=UNIT_LENGTH),
            _field("closure_type", "Closure Type", "select", is_filterable=True, width_class="half",
                   options=_options(("Zipper", "zipper"), ("Magnetic Snap", "magnetic"), ("Turn Lock", "turnlock"),
                                    ("Flap Closure", "flap"), ("Drawstring", "drawstring"), ("Open Top", "open"))),
            _field("hardware_color", "Hardware Color", "select", is_filterable=True, width_class="half",
                   options=_options(("Gold", "gold"), ("Silver", "silver"), ("Rose Gold", "rose_gold"),
                                    ("Gunmetal", "gunmetal"), ("Brass", "brass"))),
            _field("authenticity_code", "Authenticity Code", placeholder="Serial or date code",
                   help_text="For designer items", width_class="half"),
        ],
    },
    "clothing": {
        "category": {"name": "Clothing", "slug": "clothing", "description": "Clothing and apparel items"},
        "template": {"name": "Clothing", "description": "Comprehensive template for clothing items"},
        "fields": [
            _field("brand", "Brand", is_filterable=True, is_searchable=True, width_class="half"),
            _field("condition", "Condition", "select", is_required=True, is_filterable=True, width_class="half",
                   options=_options(("New with Tags", "new_with_tags"), ("New without Tags", "new_without_tags"), ("Pre-owned", "pre_owned"))),
            _field("size", "Size", "select", is_required=True, is_filterable=True, width_class="half",
                   options=_options(("XS", "xs"), ("S", "s"), ("M", "m"), ("L", "l"), ("XL", "xl"), ("XXL", "xxl"))),
            _field("color", "Color", is_required=True, is_filterable=True, is_searchable=True, width_class="half"),
            _field("material", "Material", is_filterable=True, width_class="half"),
            _field("style", "Style", is_filterable=True, width_class="half"),
            _field("pattern", "Pattern", "select", is_filterable=True, width_class="half",
                   options=_options(("Solid", "solid"), ("Striped", "striped"), ("Plaid", "plaid"), ("Floral", "floral"),
                                    ("Animal Print", "animal_print"), ("Abstract", "abstract"))),
            _field("occasion", "Occasion", "select", is_filterable=True, width_class="half",
                   options=_options(("Casual", "casual"), ("Formal", "formal"), ("Business", "business"),
                                    ("Athletic", "athletic"), ("Evening", "evening"))),
        ],
    },
    "watches": {
        "category": {"name": "Watches", "slug": "watches", "description": "Watches and timepieces"},
        "template": {"name": "Watches", "description": "Comprehensive template for watches"},
        "fields": [
            _field("brand", "Brand", is_required=True, is_filterable=True, is_searchable=True, width_class="half"),
            _field("model", "Model", is_searchable=True, width_class="half"),
            _field("condition", "Condition", "select", is_required=True, is_filterable=True, width_class="half",
                   options=_options(("New", "new"), ("Pre-owned", "pre_owned"), ("Vintage", "vintage"))),
            _field("case_material", "Case Material", "select", is_filterable=True, width_class="half",
                   options=_options(("Stainless Steel", "stainless_steel"), ("Gold", "gold"), ("Titanium", "titanium"),
                                    ("Ceramic", "ceramic"), ("Plastic", "plastic"))),
            _field("band_material", "Band Material", "select", is_filterable=True, width_class="half",
                   options=_options(("Leather", "leather"), ("Stainless Steel", "stainless_steel"), ("Rubber", "rubber"),
                                    ("Nylon", "nylon"), ("Silicone", "silicone"))),
            _field("movement", "Movement", "select", is_filterable=True, width_class="half",
                   options=_options(("Automatic", "automatic"), ("Quartz", "quartz"), ("Manual", "manual"), ("Solar", "solar"))),
            _field("case_size", "Case Size (mm)", "number", is_filterable=True, width_class="half"),
            _field("water_resistance", "Water Resistance", placeholder="e.g. 100m, 10ATM", width_class="half"),
        ],
    },
    "electronics": {
        "category": {"name": "Electronics", "slug": "electronics", "description": "Electronic devices and gadgets"},
        "template": {"name": "Electronics", "description": "Comprehensive template for electronic items"},
        "fields": [
            _field("brand", "Brand", is_required=True, is_filterable=True, is_searchable=True, width_class="half"),
            _field("model", "Model", is_required=True, is_searchable=True, width_class="half"),
            _field("condition", "Condition", "select", is_required=True, is_filterable=True, width_class="half",
                   options=_options(("New", "new"), ("Refurbished", "refurbished"), ("Used", "used"), ("For Parts", "for_parts"))),
            _field("mpn", "MPN (Manufacturer Part Number)", is_searchable=True, width_class="half"),
            _field("color", "Color", is_filterable=True, width_class="half"),
            _field("storage_capacity", "Storage Capacity", placeholder="e.g. 256GB, 1TB", is_filterable=True, width_class="half"),
            _field("screen_size", "Screen Size", placeholder="e.g. 6.1 inches", is_filterable=True, width_class="half"),
            _field("connectivity", "Connectivity", placeholder="e.g. WiFi, Bluetooth, USB-C", width_class="half"),
        ],
    },
    "general": {
        "category": {"name": "General Products", "slug": "general-products", "description": "General product category"},
        "template": {"name": "General Product", "description": "Basic template for general products"},
        "fields": [
            _field("brand", "Brand", is_filterable=True, is_searchable=True, width_class="half"),
            _field("condition", "Condition", "select", is_required=True, is_filterable=True, width_class="half",
                   options=_options(("New", "new"), ("Used", "used"), ("Refurbished", "refurbished"))),
            _field("color", "Color", is_filterable=True, is_searchable=True, width_class="half"),
            _field("material", "Material", is_filterable=True, width_class="half"),
            _field("size", "Size", is_filterable=True, width_class="half"),
            _field("model", "Model", is_searchable=True, width_class="half"),
        ],
    },
}


def validate_template_response(data: Any) -> Dict[str, Any]:
    """Check that a parsed response has the sections needed to build a template."""
    if not isinstance(data, dict):
        raise AIResponseError("Template response must be a JSON object", json.dumps(data))
    missing = [section for section in REQUIRED_SECTIONS if not data.get(section)]
    if missing:
        raise AIResponseError(f"AI response missing required fields: {', '.join(missing)}", json.dumps(data))
    if not isinstance(data["fields"], list):
        raise AIResponseError("Template fields must be a list", json.dumps(data))
    return data


class TemplateGenerator(SuggestionGenerator):

    def builtin_template(self, prompt: str) -> Dict[str, Any]:
        product_type = detect_product_type(prompt)
        template = json.loads(json.dumps(BUILTIN_TEMPLATES[product_type]))
        template["product_type"] = product_type
        return template

    def generate_from_prompt(self, prompt: str, store_id: int) -> Dict[str, Any]:
        """
        Propose a category, template and fields for what the seller describes.

        Args:
            prompt: Free text such as "vintage gold rings"
            store_id: Store the template is for

        Returns:
            Dict with ``category``, ``template`` and ``fields`` sections plus
            the ``original_prompt``

        Raises:
            AIResponseError: If the model reply is not a usable template
            AIProviderError: If the provider call fails
        """
        if not self.ai.has_credentials(store_id):
            logger.warning("No AI API key configured, using built-in template")
            result = self.builtin_template(prompt)
        else:
            system = SYSTEM_PROMPT.format(
                platforms=", ".join(SUPPORTED_PLATFORMS),
                requirements=json.dumps(PLATFORM_REQUIREMENTS, indent=2),
            )
            response = self.ai.chat_with_system(
                system,
                USER_PROMPT.format(prompt=prompt),
                store_id=store_id,
                feature="template_generation",
                temperature=0.7,
                max_tokens=4000,
            )
            result = validate_template_response(response.to_json())

        result["original_prompt"] = prompt
        return result

    def create_from_response(self, data: Dict[str, Any], store_id: int) -> ProductTemplate:
        """Persist the category, template and fields of a generated template."""
        data = validate_template_response(data)
        category_data = data["category"]
        template_data = data["template"]

        with session_scope(self.session_factory) as session:
            template = ProductTemplate(
                store_id=store_id,
                name=template_data["name"],
                description=template_data.get("description"),
                is_active=True,
                ai_generated=True,
                generation_prompt=data.get("original_prompt"),
            )
            for index, field_data in enumerate(data["fields"]):
                template.fields.append(self._build_field(field_data, index))
            session.add(template)
            session.flush()

            session.add(Category(
                store_id=store_id,
                name=category_data["name"],
                slug=category_data.get("slug") or slugify(category_data["name"]),
                description=category_data.get("description"),
                template_id=template.id,
            ))

        logger.info(f"Created template {template.id} ({template.name}) with {len(template.fields)} fields for store {store_id}")
        self.ai.event_logger.info(
            "template.created",
            f"Template {template.name} created",
            {"store_id": store_id, "fields": len(template.fields)},
        )
        return template

    @staticmethod
    def _build_field(field_data: Dict[str, Any], index: int) -> ProductTemplateField:
        try:
            name = field_data["name"]
            label = field_data["label"]
        except KeyError as e:
            raise AIResponseError(f"Template field missing {e.args[0]}", json.dumps(field_data)) from e

        return ProductTemplateField(
            name=name,
            canonical_name=field_data.get("canonical_name") or name,
            label=label,
            type=field_data.get("type") or "text",
            placeholder=field_data.get("placeholder"),
            help_text=field_data.get("help_text"),
            is_required=bool(field_data.get("is_required", False)),
            is_searchable=bool(field_data.get("is_searchable", False)),
            is_filterable=bool(field_data.get("is_filterable", False)),
            group_name=field_data.get("group_name"),
            width_class=field_data.get("width_class") or "full",
            sort_order=index,
            options=field_data.get("options") or None,
            platform_mappings=field_data.get("platform_mappings") or None,
            ai_generated=True,
        )
