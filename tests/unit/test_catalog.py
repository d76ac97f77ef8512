"""Tests for the product catalogue"""
import json

import pytest

from src.catalog import ProductCatalog, Product, CatalogError, tokenize
from src.llm_client import LLMError


def write_cache(path, products):
    path.write_text(json.dumps([p.to_dict() for p in products], ensure_ascii=False), encoding="utf-8")


@pytest.fixture
def loaded_catalog(tmp_path, fake_llm_factory, sample_products):
    def _make(replies=None):
        cache = tmp_path / "products.json"
        write_cache(cache, sample_products)
        catalog = ProductCatalog(fake_llm_factory(replies), cache, tmp_path / "materials.csv")
        assert catalog.load_from_cache()
        return catalog
    return _make


def test_tokenize():
    assert tokenize('Лоток (перф.) 100х100, "12" метров/шт - М10') == [
        "лоток", "перф", "100х100", "12", "метров", "шт", "м10"
    ]


def test_load_from_cache(loaded_catalog):
    catalog = loaded_catalog()

    assert len(catalog) == 5
    assert catalog.get(3) == Product(id=3, name="Гайка М10", price=5)
    assert catalog.get(99) is None


def test_missing_cache_leaves_catalog_empty(tmp_path, fake_llm_factory):
    catalog = ProductCatalog(fake_llm_factory(), tmp_path / "products.json", tmp_path / "materials.csv")

    assert catalog.load_from_cache() is False
    assert len(catalog) == 0


def test_corrupt_cache_leaves_catalog_empty(tmp_path, fake_llm_factory):
    cache = tmp_path / "products.json"
    cache.write_text("[{broken", encoding="utf-8")
    catalog = ProductCatalog(fake_llm_factory(), cache, tmp_path / "materials.csv")

    assert catalog.load_from_cache() is False


def test_ensure_loaded_parses_materials_and_writes_cache(tmp_path, fake_llm_factory):
    materials = tmp_path / "materials.csv"
    materials.write_text("Гайка М10;5 руб.\nВинт М10х20;7 руб.\n", encoding="utf-8")
    cache = tmp_path / "products.json"
    llm = fake_llm_factory([
        'Конечно! ```json\n[{"name": "Гайка М10", "price": 5}, {"name": "Винт М10х20", "price": 7}]\n```'
    ])
    catalog = ProductCatalog(llm, cache, materials)

    catalog.ensure_loaded()

    assert [p.to_dict() for p in catalog.products] == [
        {"id": 1, "name": "Гайка М10", "price": 5},
        {"id": 2, "name": "Винт М10х20", "price": 7},
    ]
    assert "Гайка М10;5 руб." in llm.prompts[0]
    cached = json.loads(cache.read_text(encoding="utf-8"))
    assert cached[1] == {"id": 2, "name": "Винт М10х20", "price": 7}
    assert "Гайка" in cache.read_text(encoding="utf-8")


def test_ensure_loaded_is_noop_when_products_present(loaded_catalog):
    catalog = loaded_catalog(replies=[])

    catalog.ensure_loaded()

    assert catalog.llm.prompts == []


def test_ensure_loaded_without_materials_file(tmp_path, fake_llm_factory):
    catalog = ProductCatalog(fake_llm_factory(), tmp_path / "products.json", tmp_path / "materials.csv")

    with pytest.raises(CatalogError) as exc_info:
        catalog.ensure_loaded()

    assert "materials.csv" in str(exc_info.value)


def test_ensure_loaded_with_invalid_llm_json(tmp_path, fake_llm_factory):
    materials = tmp_path / "materials.csv"
    materials.write_text("Гайка М10;5 руб.", encoding="utf-8")
    catalog = ProductCatalog(fake_llm_factory(['[{"title": "Гайка"}]']), tmp_path / "products.json", materials)

    with pytest.raises(CatalogError) as exc_info:
        catalog.ensure_loaded()

    assert "невалидный JSON" in str(exc_info.value)


def test_ensure_loaded_with_empty_result(tmp_path, fake_llm_factory):
    materials = tmp_path / "materials.csv"
    materials.write_text("без цен", encoding="utf-8")
    catalog = ProductCatalog(fake_llm_factory(["[]"]), tmp_path / "products.json", materials)

    with pytest.raises(CatalogError):
        catalog.ensure_loaded()


def test_retrieve_ranks_by_keyword_hits_then_name_length(loaded_catalog):
    catalog = loaded_catalog(['{"keywords": ["лоток", "100", "м10"]}'])

    relevant = catalog.retrieve_relevant("Лоток 100х100 и гайки М10")

    # two hits first, then single hits by shorter name
    assert [p.id for p in relevant] == [1, 3, 4, 2]


def test_retrieve_respects_top_k(loaded_catalog):
    catalog = loaded_catalog(['{"keywords": ["м10"]}'])

    relevant = catalog.retrieve_relevant("М10", top_k=1)

    assert [p.id for p in relevant] == [3]


def test_retrieve_falls_back_to_tokenizer(loaded_catalog):
    catalog = loaded_catalog([LLMError("нет связи")])

    relevant = catalog.retrieve_relevant("Короб 200х200")

    assert [p.id for p in relevant] == [5]


def test_retrieve_with_unparseable_keywords_falls_back(loaded_catalog):
    catalog = loaded_catalog(['{"keywords": "гайка"}'])

    relevant = catalog.retrieve_relevant("гайка")

    assert [p.id for p in relevant] == [3]


def test_retrieve_nothing_relevant(loaded_catalog):
    catalog = loaded_catalog(['{"keywords": ["кабель"]}'])

    assert catalog.retrieve_relevant("кабель ВВГ") == []


def test_retrieve_no_keywords(loaded_catalog):
    catalog = loaded_catalog(['{"keywords": []}'])

    assert catalog.retrieve_relevant("пожалуйста") == []
