"""
Hitcount - privacy-preserving pageview analytics.
"""
__version__ = "1.0.0"
