"""
                Restaurant Order Dashboard

Order pricing, lifecycle tracking and analytics API for restaurant
dine-in and take-out orders.

Author: Khalil_Bannouri
Version: 4.0.0
License: MIT
"""

__version__ = "4.0.0"
__author__ = "Khalil_Bannouri"
