"""Booking application for the escort booking backend.

This package holds the pricing engine, the order settlement services and
the escort rating aggregator, together with the thin REST adapter that
exposes them.
"""
