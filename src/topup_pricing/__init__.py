"""
Top-up Pricing Package

Pricing and discount resolution for an in-game currency storefront.
Resolves buyer prices using Override → Storewide Promo → List price,
with bulk cohort tooling for managing per-buyer overrides.
"""

__version__ = "1.0.0"
