"""
Operational helpers: logging setup and benchmark timing.
"""
