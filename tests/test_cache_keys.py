"""
Pantry API — Cache Key Unit Tests
==================================

What:  Exact key strings for the response cache and the invalidator.
Why:   Keys are a contract between two components (and visible in Redis);
       a one-character drift silently turns every eviction into a no-op.
"""

import base64

import pytest

from pantry_api.cache.keys import (
    ANONYMOUS,
    build_cache_key,
    encode_query,
    resolve_eviction_key,
    user_identity,
)


class TestBuildCacheKey:

    def test_base_key_and_user(self):
        assert build_cache_key("food", "user123") == "food:user123"

    def test_anonymous_user(self):
        assert build_cache_key("foods:list", None) == "foods:list:anonymous"
        assert user_identity(None) == ANONYMOUS == "anonymous"

    def test_route_params_in_declaration_order(self):
        key = build_cache_key("food", "user123", [("id", "food-1")])
        assert key == "food:user123:id:food-1"

        key = build_cache_key("group", "u", [("id", "g-1"), ("member_id", "m-2")])
        assert key == "group:u:id:g-1:member_id:m-2"

    def test_query_string_is_base64_encoded(self):
        key = build_cache_key(
            "food", "user123", [("id", "food-1")], [("includeOpenFoodFacts", "true")]
        )
        assert key == "food:user123:id:food-1:aW5jbHVkZU9wZW5Gb29kRmFjdHM9dHJ1ZQ=="

    def test_test_key_example(self):
        key = build_cache_key(
            "test-key", "user123", [("id", "food-1")], [("includeOpenFoodFacts", "true")]
        )
        assert key == "test-key:user123:id:food-1:aW5jbHVkZU9wZW5Gb29kRmFjdHM9dHJ1ZQ=="

    def test_anonymous_barcode_lookup_without_params(self):
        assert build_cache_key("food_barcode", None) == "food_barcode:anonymous"

    def test_query_order_is_preserved(self):
        a = build_cache_key("foods:list", None, query_params=[("page", "1"), ("limit", "10")])
        b = build_cache_key("foods:list", None, query_params=[("limit", "10"), ("page", "1")])
        assert a != b

    def test_repeated_query_params_are_kept(self):
        encoded = encode_query([("tag", "a"), ("tag", "b")])
        assert base64.b64decode(encoded).decode() == "tag=a&tag=b"

    def test_empty_query_values_are_dropped(self):
        assert encode_query([("search", "")]) == ""
        assert build_cache_key("foods:list", "u", query_params=[("search", "")]) == "foods:list:u"

    def test_empty_value_is_kept_beside_a_real_one(self):
        with_empty = build_cache_key("foods:list", "u", query_params=[("a", ""), ("b", "1")])
        without = build_cache_key("foods:list", "u", query_params=[("b", "1")])

        assert with_empty != without
        assert base64.b64decode(with_empty.split(":")[-1]).decode() == "a=&b=1"

    def test_separators_inside_query_values_cannot_leak_into_key(self):
        key = build_cache_key("foods:list", "u", query_params=[("search", "a:b")])
        assert key.count(":") == 3
        assert base64.b64decode(key.split(":")[-1]).decode() == "search=a%3Ab"

    def test_empty_base_key_rejected(self):
        with pytest.raises(ValueError):
            build_cache_key("", "user")


class TestResolveEvictionKey:

    def test_user_placeholder(self):
        assert resolve_eviction_key("pantries:{userId}", user_id="user123") == "pantries:user123"

    def test_anonymous_user_placeholder(self):
        assert resolve_eviction_key("groups:{userId}") == "groups:anonymous"

    def test_id_and_user_placeholders(self):
        key = resolve_eviction_key(
            "food:{userId}:id:{id}", user_id="user123", route_params={"id": "food-1"}
        )
        assert key == "food:user123:id:food-1"

    def test_eviction_matches_cached_key(self):
        cached = build_cache_key("food", "user123", [("id", "food-1")])
        evicted = resolve_eviction_key(
            "food:{userId}:id:{id}", user_id="user123", route_params={"id": "food-1"}
        )
        assert cached == evicted

    def test_barcode_placeholder(self):
        key = resolve_eviction_key(
            "food_barcode:{userId}:barcode:{barcode}",
            user_id="u1",
            route_params={"barcode": "3017620422003"},
        )
        assert key == "food_barcode:u1:barcode:3017620422003"
        assert key == build_cache_key("food_barcode", "u1", [("barcode", "3017620422003")])

    def test_keycloak_placeholder_uses_subject(self):
        key = resolve_eviction_key("user_profile:{keycloakId}", user_id="u1", subject="kc-123")
        assert key == "user_profile:kc-123"

    def test_missing_values_become_empty(self):
        assert resolve_eviction_key("food:{id}") == "food:"
        assert resolve_eviction_key("user_profile:{keycloakId}") == "user_profile:"

    def test_each_placeholder_replaced_once(self):
        key = resolve_eviction_key("x:{id}:{id}", route_params={"id": "7"})
        assert key == "x:7:{id}"

    def test_template_without_placeholders_is_literal(self):
        assert resolve_eviction_key("foods:count", user_id="u") == "foods:count"
