"""
                Pak Cuisine

Restaurant storefront and ordering backend: menu, cart, checkout,
reservations, chatbot and an admin API over a swappable row backend,
with Mock/Real payment and email services.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
