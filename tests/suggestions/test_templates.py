import json

import pytest
from sqlalchemy import select

from shopmata.ai import AIManager
from shopmata.config import AIConfig
from shopmata.db import Category, ProductTemplate, session_scope
from shopmata.exceptions import AIResponseError
from shopmata.suggestions import TemplateGenerator, detect_product_type

GENERATED = {
    "category": {"name": "Vintage Handbags", "description": "Pre-owned designer bags"},
    "template": {"name": "Vintage Handbag", "description": "Designer bag listing"},
    "fields": [
        {"name": "brand", "label": "Brand", "type": "text", "is_required": True},
        {
            "name": "material",
            "label": "Material",
            "type": "select",
            "options": [{"label": "Leather", "value": "leather"}],
            "platform_mappings": [{"platform": "ebay", "field_name": "Material", "is_required": True}],
        },
    ],
}


@pytest.mark.parametrize("prompt, product_type", [
    ("vintage gold rings", "jewelry"),
    ("Designer PURSES", "handbags"),
    ("summer dresses", "clothing"),
    ("Swiss watches", "watches"),
    ("used laptops", "electronics"),
    ("garden gnomes", "general"),
])
def test_detect_product_type(prompt, product_type):
    assert detect_product_type(prompt) == product_type


def test_builtin_template_without_credentials(session_factory, store):
    def factory(**kwargs):
        raise AssertionError("no client should be created")

    manager = AIManager(AIConfig(provider="anthropic"), session_factory, client_factory=factory)

    result = TemplateGenerator(manager).generate_from_prompt("vintage designer handbags", store.id)

    assert result["product_type"] == "handbags"
    assert result["template"]["name"] == "Handbags & Accessories"
    assert result["original_prompt"] == "vintage designer handbags"
    assert result["fields"][0]["name"] == "brand"


def test_generated_template(ai, fake_client, store):
    fake_client.replies.append("Here you go:\n" + json.dumps(GENERATED))

    result = TemplateGenerator(ai).generate_from_prompt("vintage handbags", store.id)

    assert result["template"]["name"] == "Vintage Handbag"
    assert result["original_prompt"] == "vintage handbags"
    call = fake_client.calls[0]
    assert "SUPPORTED PLATFORMS: eBay, Amazon, Etsy, Shopify, Walmart" in call["system"]
    assert call["messages"][0]["content"].startswith("I want to sell: vintage handbags")
    assert call["max_tokens"] == 4000


def test_generated_template_missing_sections(ai, fake_client, store):
    fake_client.replies.append(json.dumps({"template": {"name": "x"}, "fields": []}))

    with pytest.raises(AIResponseError, match="missing required fields: category, fields"):
        TemplateGenerator(ai).generate_from_prompt("stuff", store.id)


def test_create_from_response(ai, events, session_factory, store):
    data = dict(GENERATED, original_prompt="vintage handbags")

    template = TemplateGenerator(ai).create_from_response(data, store.id)

    with session_scope(session_factory) as session:
        saved = session.get(ProductTemplate, template.id)
        assert saved.store_id == store.id
        assert saved.ai_generated is True
        assert saved.generation_prompt == "vintage handbags"
        assert [(f.name, f.sort_order) for f in saved.fields] == [("brand", 0), ("material", 1)]
        assert saved.fields[0].is_required is True
        assert saved.fields[0].width_class == "full"
        assert saved.fields[1].options == [{"label": "Leather", "value": "leather"}]
        assert saved.fields[1].platform_mappings[0]["platform"] == "ebay"

        category = session.scalars(select(Category).where(Category.template_id == template.id)).one()
        assert category.name == "Vintage Handbags"
        assert category.slug == "vintage-handbags"
        assert category.store_id == store.id
    assert "template.created" in events.names()


def test_field_without_label_rolls_back(ai, session_factory, store):
    data = dict(GENERATED, fields=[{"name": "brand", "label": "Brand"}, {"name": "color"}])

    with pytest.raises(AIResponseError, match="Template field missing label"):
        TemplateGenerator(ai).create_from_response(data, store.id)

    with session_scope(session_factory) as session:
        assert session.scalars(select(ProductTemplate)).all() == []
        assert session.scalars(select(Category)).all() == []
