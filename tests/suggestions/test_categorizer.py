import json

import pytest

from shopmata.exceptions import AIResponseError
from shopmata.suggestions import ProductCategorizer
from shopmata.suggestions.categorizer import split_tags


@pytest.fixture
def categorizer(ai):
    return ProductCategorizer(ai)


def test_categorize_lists_only_the_stores_categories(categorizer, fake_client, seed, store, other_store):
    rings = seed.category(store, "Rings")
    watches = seed.category(store, "Watches")
    seed.category(other_store, "Handbags")
    product = seed.product(store, "Rolex Submariner", category=rings)
    fake_client.replies.append(json.dumps({
        "category_id": watches.id,
        "category_name": "Watches",
        "confidence": 92,
        "reasoning": "It is a wristwatch.",
        "alternatives": [rings.id],
    }))

    suggestion = categorizer.categorize(product.id, store.id)

    prompt = fake_client.calls[0]["messages"][0]["content"]
    assert f"- ID: {rings.id}, Name: Rings" in prompt
    assert f"- ID: {watches.id}, Name: Watches" in prompt
    assert "Handbags" not in prompt
    assert "- Current Category: Rings" in prompt
    assert suggestion.type == "category"
    assert suggestion.original_content == "Rings"
    assert suggestion.meta["suggested_category_id"] == watches.id
    assert suggestion.meta["confidence"] == 92
    assert suggestion.meta["alternative_categories"] == [rings.id]


def test_tags(categorizer, fake_client, seed, store):
    product = seed.product(store, "Gold Hoop Earrings", description="14k yellow gold hoops")
    fake_client.replies.append("gold earrings, hoops, , 14k gold, yellow gold, jewelry")

    suggestion = categorizer.suggest_tags(product.id, store.id, platform="etsy", max_tags=4)

    assert suggestion.suggested_content == "gold earrings, hoops, 14k gold, yellow gold"
    assert suggestion.meta["tags"] == ["gold earrings", "hoops", "14k gold", "yellow gold"]
    assert suggestion.meta["count"] == 4
    assert suggestion.original_content is None
    assert "Generate up to 4 highly relevant tags" in fake_client.calls[0]["system"]
    assert "Target Platform: etsy" in fake_client.calls[0]["messages"][0]["content"]


def test_split_tags():
    assert split_tags(" a , b,,c ", 10) == ["a", "b", "c"]
    assert split_tags("", 5) == []


def test_categorize_rejects_a_non_numeric_category_id(categorizer, fake_client, seed, store):
    product = seed.product(store, "Rolex Submariner")
    fake_client.replies.append(json.dumps({"category_id": "watches", "category_name": "Watches", "confidence": 90}))

    with pytest.raises(AIResponseError, match="category_id"):
        categorizer.categorize(product.id, store.id)
