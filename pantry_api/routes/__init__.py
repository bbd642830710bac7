# Routes package init
"""
Pantry API — Routes Package
============================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - foods.py:                /foods                (catalog, OpenFoodFacts search/import)
    - pantries.py:             /pantries
    - pantry_items.py:         /pantry-items
    - shopping_lists.py:       /shopping-lists
    - shopping_list_items.py:  /shopping-list-items  (toggle, clear-checked)
    - groups.py:               /groups               (members, invite codes, virtual members)
    - dishes.py:               /dishes
    - meal_logs.py:            /meal-logs
    - recipes.py:              /recipes
    - profile.py:              /profile
    - users.py:                /users                (admin listing, per-user preferences)
    - health.py:               /health

Design Principle:
    Routes stay THIN. They read the request, call a service and shape the
    response. Business rules live in services; response caching is declared
    on the route with `cacheable` / `cache_evict`.
"""
