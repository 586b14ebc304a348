"""
PizzaDesk: order desk backend for a pizzeria
"""
__version__ = "1.0.0"
