"""Services Layer — orchestrates store access around the pure core.

Invariants:
    - Services receive their AsyncSession explicitly; they never reach for a global pool
    - Services raise StocktakeError subclasses; routes never translate store errors themselves
"""
