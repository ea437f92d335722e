"""
Static catalog the chatbot answers from when it does not query the backend.
"""

CATALOG_ITEMS = [
    {"id": "chicken-biryani", "name": "Chicken Biryani", "category": "Rice & Biryani", "price": 12.99,
     "description": "Fragrant basmati layered with spiced chicken and saffron.", "image": "/images/biryani.jpg", "is_featured": True},
    {"id": "mutton-biryani", "name": "Mutton Biryani", "category": "Rice & Biryani", "price": 15.99,
     "description": "Slow-cooked mutton with aged basmati rice.", "image": "/images/mutton-biryani.jpg", "is_featured": False},
    {"id": "chicken-karahi", "name": "Chicken Karahi", "category": "Karahi", "price": 16.99,
     "description": "Wok-fried chicken with tomatoes, ginger and green chillies.", "image": "/images/karahi.jpg", "is_featured": True},
    {"id": "seekh-kebab", "name": "Seekh Kebab", "category": "BBQ & Grill", "price": 10.99,
     "description": "Minced beef skewers grilled over charcoal.", "image": "/images/seekh-kebab.jpg", "is_featured": True},
    {"id": "chicken-tikka", "name": "Chicken Tikka", "category": "BBQ & Grill", "price": 11.99,
     "description": "Yoghurt-marinated chicken leg, tandoor roasted.", "image": "/images/tikka.jpg", "is_featured": False},
    {"id": "chicken-broast", "name": "Chicken Broast", "category": "Fast Food", "price": 9.99,
     "description": "Pressure-fried crispy chicken with fries.", "image": "/images/broast.jpg", "is_featured": False},
    {"id": "zinger-burger", "name": "Zinger Burger", "category": "Fast Food", "price": 7.99,
     "description": "Crunchy chicken fillet burger with house sauce.", "image": "/images/burger.jpg", "is_featured": True},
    {"id": "lahori-fish", "name": "Lahori Fish", "category": "Seafood", "price": 14.99,
     "description": "Gram-flour battered fish, Lahore street style.", "image": "/images/fish.jpg", "is_featured": False},
    {"id": "prawn-masala", "name": "Prawn Masala", "category": "Seafood", "price": 17.99,
     "description": "Tiger prawns in a tangy tomato masala.", "image": "/images/prawn.jpg", "is_featured": False},
    {"id": "vegetable-samosa", "name": "Vegetable Samosa", "category": "Starters", "price": 4.99,
     "description": "Crisp pastry filled with spiced potato and peas.", "image": "/images/samosa.jpg", "is_featured": False},
    {"id": "gulab-jamun", "name": "Gulab Jamun", "category": "Dessert", "price": 5.49,
     "description": "Milk dumplings soaked in rose syrup.", "image": "/images/gulab-jamun.jpg", "is_featured": False},
    {"id": "kheer", "name": "Kheer", "category": "Dessert", "price": 4.99,
     "description": "Slow-cooked rice pudding with cardamom and pistachio.", "image": "/images/kheer.jpg", "is_featured": False},
    {"id": "mango-lassi", "name": "Mango Lassi", "category": "Drinks", "price": 3.99,
     "description": "Chilled yoghurt drink blended with mango.", "image": "/images/lassi.jpg", "is_featured": False},
    {"id": "doodh-patti-chai", "name": "Doodh Patti Chai", "category": "Drinks", "price": 2.49,
     "description": "Strong milky tea brewed the Pakistani way.", "image": "/images/chai.jpg", "is_featured": False},
    {"id": "family-platter", "name": "Family BBQ Platter", "category": "Platters", "price": 39.99,
     "description": "Kebabs, tikka, naan and raita for four.", "image": "/images/platter.jpg", "is_featured": True},
]

OPENING_HOURS = [
    {"day": "Monday - Thursday", "hours": "11:00 AM - 10:00 PM"},
    {"day": "Friday - Saturday", "hours": "11:00 AM - 11:00 PM"},
    {"day": "Sunday", "hours": "12:00 PM - 9:00 PM"},
]


# opening_hours.day_of_week: 0 = Sunday
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def hours_from_rows(rows: list[dict]) -> list[dict]:
    """
    Turn opening_hours rows into ``{day, hours}`` entries, Monday first.

    Falls back to OPENING_HOURS when the operator has not entered any.
    """
    if not rows:
        return OPENING_HOURS
    entries = []
    for row in sorted(rows, key=lambda r: (r["day_of_week"] - 1) % 7):
        if row.get("is_closed") or not (row.get("open_time") and row.get("close_time")):
            hours = "Closed"
        else:
            hours = f"{row['open_time']} - {row['close_time']}"
        entries.append({"day": DAY_NAMES[row["day_of_week"] % 7], "hours": hours})
    return entries

def featured_items(limit: int = 4) -> list[dict]:
    return [item for item in CATALOG_ITEMS if item["is_featured"]][:limit]
