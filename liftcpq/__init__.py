"""
Lift CPQ — configure, price, quote service for elevator sales.
"""
