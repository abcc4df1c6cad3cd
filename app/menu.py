"""
Restaurant Menu

Items offered by the order form. Orders are not checked against this list;
clients send the name and price of each line themselves.
"""

from decimal import Decimal
from typing import Any, Dict, List

MENU_ITEMS: List[Dict[str, Any]] = [
    {"name": "Margherita Pizza", "price": Decimal("12.99"), "category": "Pizza",
     "description": "Classic tomato, mozzarella, and basil"},
    {"name": "Pepperoni Pizza", "price": Decimal("14.99"), "category": "Pizza",
     "description": "Loaded with pepperoni slices"},
    {"name": "Caesar Salad", "price": Decimal("8.99"), "category": "Salad",
     "description": "Fresh romaine with Caesar dressing"},
    {"name": "Pasta Carbonara", "price": Decimal("13.99"), "category": "Pasta",
     "description": "Creamy pasta with bacon and parmesan"},
    {"name": "Grilled Chicken", "price": Decimal("15.99"), "category": "Main Course",
     "description": "Tender grilled chicken breast"},
    {"name": "Beef Burger", "price": Decimal("11.99"), "category": "Burgers",
     "description": "Juicy beef patty with lettuce and tomato"},
    {"name": "Fish & Chips", "price": Decimal("14.49"), "category": "Seafood",
     "description": "Crispy battered fish with fries"},
    {"name": "Vegetable Stir Fry", "price": Decimal("10.99"), "category": "Vegetarian",
     "description": "Mixed vegetables in savory sauce"},
    {"name": "Garlic Bread", "price": Decimal("5.99"), "category": "Sides",
     "description": "Toasted bread with garlic butter"},
    {"name": "French Fries", "price": Decimal("4.99"), "category": "Sides",
     "description": "Crispy golden fries"},
]
