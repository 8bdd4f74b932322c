"""Reusable building blocks shared by storefront verticals.

Each module is self-contained: the rules engine (pure rule functions folded
into a ValidationResult), the async repository layer, and the dataclass
discount configuration.
"""
