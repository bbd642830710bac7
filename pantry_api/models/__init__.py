"""ORM models. Importing this package registers every table with Base.metadata."""

from pantry_api.models.food import Food
from pantry_api.models.group import (
    ActivityLevel,
    AnnualIncomeLevel,
    Gender,
    GroupMembership,
    GroupRole,
    UserGroup,
    VirtualMember,
)
from pantry_api.models.meal import Dish, MealLog, MealType, TypeOfMeal
from pantry_api.models.pantry import Pantry, PantryItem, Unit
from pantry_api.models.recipe import Recipe
from pantry_api.models.shopping_list import ShoppingList, ShoppingListItem
from pantry_api.models.user import User

__all__ = [
    "ActivityLevel",
    "AnnualIncomeLevel",
    "Dish",
    "Food",
    "Gender",
    "GroupMembership",
    "GroupRole",
    "MealLog",
    "MealType",
    "Pantry",
    "PantryItem",
    "Recipe",
    "ShoppingList",
    "ShoppingListItem",
    "TypeOfMeal",
    "Unit",
    "User",
    "UserGroup",
    "VirtualMember",
]
