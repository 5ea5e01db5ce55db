"""
                Resto Match

Restaurant management backend: users, menu, orders and reservations
behind role-based access control, with aggregate reporting.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
