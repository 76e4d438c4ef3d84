#!/usr/bin/env python3
"""
e2e_check.py — basic checks against a running catalog service:
- /health reports both backends connected and a non-zero product count
- /products honours limit/offset and caps limit at 100
- /products/<id> round-trips an id taken from the listing; unknown ids give 404
- /categories is sorted
- /product-aggs returns the fixed price and rating buckets

Run: python scripts/e2e_check.py [base_url]
"""
import sys

import requests

BASE = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:3000"

errors = []


def get(path, **params):
    r = requests.get(f"{BASE}{path}", params=params, timeout=10)
    return r.status_code, r.json()


def check_health():
    status, body = get("/health")
    print("Health:", status, body)
    if status != 200 or body.get("status") != "healthy":
        errors.append(f"/health not healthy: {body}")
    elif not body.get("products_count"):
        errors.append("/health reports zero products (seeding not finished?)")


def check_listing():
    status, body = get("/products")
    if status != 200:
        errors.append(f"/products failed: {body}")
        return None
    print(f"Listing: total={body['total']} returned={len(body['products'])}")
    if (body["limit"], body["offset"]) != (20, 0):
        errors.append(f"default window wrong: limit={body['limit']} offset={body['offset']}")

    _, capped = get("/products", limit=1000)
    if capped.get("limit") != 100:
        errors.append(f"limit not capped at 100: {capped.get('limit')}")
    return body["products"][0]["id"] if body["products"] else None


def check_product(pid):
    if pid is None:
        errors.append("no product id to look up")
        return
    status, body = get(f"/products/{pid}")
    if status != 200 or body.get("id") != pid:
        errors.append(f"/products/{pid} returned {status}: {body}")
    status, body = get("/products/999999999")
    if status != 404:
        errors.append(f"unknown id returned {status}, expected 404")


def check_categories():
    status, body = get("/categories")
    items = body.get("items", [])
    print("Categories:", len(items))
    if status != 200 or items != sorted(items):
        errors.append("/categories failed or not sorted")


def check_facets():
    status, body = get("/product-aggs")
    facets = body.get("facets", {})
    if status != 200:
        errors.append(f"/product-aggs failed: {body}")
        return
    if len(facets.get("price", [])) != 5 or len(facets.get("rating", [])) != 4:
        errors.append(f"unexpected range buckets: {facets}")


def main():
    print("=== E2E CHECKS ===", BASE)
    try:
        check_health()
        pid = check_listing()
        check_product(pid)
        check_categories()
        check_facets()
    except requests.RequestException as e:
        errors.append(f"service unreachable: {e}")

    if errors:
        print("\n=== FAILURES ===")
        for e in errors:
            print("-", e)
        sys.exit(2)
    print("\nALL E2E CHECKS PASSED")
    sys.exit(0)


if __name__ == "__main__":
    main()
