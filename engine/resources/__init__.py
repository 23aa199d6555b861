"""
Resource loading - the static game database.
"""
