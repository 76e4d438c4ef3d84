"""Index management and bulk indexing against a mocked client."""

from unittest.mock import patch

from catalog_api.search import PRODUCT_MAPPING


def test_creates_missing_index(product_index, es_client):
    es_client.indices.exists.return_value = False
    assert product_index.ensure_index() is True
    es_client.indices.create.assert_called_once_with(index="products", mappings=PRODUCT_MAPPING)


def test_existing_index_is_left_alone(product_index, es_client):
    es_client.indices.exists.return_value = True
    assert product_index.ensure_index() is False
    es_client.indices.create.assert_not_called()


def test_mapping_field_types():
    props = PRODUCT_MAPPING["properties"]
    assert props["title"]["type"] == "text"
    assert props["category"]["type"] == "keyword"
    assert props["brand"]["type"] == "keyword"
    assert props["price"]["type"] == "float"
    assert props["stock"]["type"] == "integer"
    assert props["dimensions"]["properties"]["depth"]["type"] == "float"
    assert props["meta"]["properties"]["createdAt"]["type"] == "date"


@patch("catalog_api.search.helpers.bulk")
def test_bulk_index_uses_product_ids(mock_bulk, product_index, es_client, products):
    mock_bulk.return_value = (2, [])
    assert product_index.bulk_index_products(products[:2]) == 2

    client, actions = mock_bulk.call_args.args
    assert client is es_client
    assert [a["_id"] for a in actions] == ["1", "2"]
    assert actions[0]["_index"] == "products"
    assert actions[0]["_source"]["id"] == 1
    assert actions[0]["_source"]["title"] == "Product 1"
    assert mock_bulk.call_args.kwargs["refresh"] is True
    assert mock_bulk.call_args.kwargs["raise_on_error"] is False


@patch("catalog_api.search.helpers.bulk")
def test_bulk_index_errors_do_not_raise(mock_bulk, product_index, products):
    mock_bulk.return_value = (1, [{"index": {"_id": "2", "status": 400,
                                             "error": {"type": "mapper_parsing_exception"}}}])
    assert product_index.bulk_index_products(products[:2]) == 1


@patch("catalog_api.search.helpers.bulk")
def test_bulk_index_empty_batch(mock_bulk, product_index):
    assert product_index.bulk_index_products([]) == 0
    mock_bulk.assert_not_called()
