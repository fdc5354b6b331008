"""
Menu reconciliation engine: configuration overrides, category membership,
menu groups, editing sessions and platform sync.
"""
