"""
Utility helpers for DHCP6Mod (reporting, capture output)
"""
