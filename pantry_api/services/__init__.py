"""
Pantry API — Services Layer
============================

What:  Business logic between the routes (HTTP) and the database (persistence).
How:   Each module exposes a stateless singleton; every call receives the
       request's AsyncSession and raises typed errors from pantry_api.exceptions.

Service Inventory:
    - OpenFoodFactsService: upstream product client (retry, circuit breaker, result cache)
    - FoodService: shared catalog, enrichment and import
    - UserService: users resolved from token claims, profile
    - PantryService / PantryItemService: pantries and their stock
    - ShoppingListService / ShoppingListItemService: lists, check-off, auto-add to pantry
    - GroupService: households, invite codes, virtual members
    - DishService / MealLogService: dishes and what was eaten when
"""
