"""Marketplace backend: supplier onboarding, OTP verification and product catalog"""

__version__ = "1.0.0"
