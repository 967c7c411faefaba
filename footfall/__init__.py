"""
Tourism Footfall Analytics

Reconciles telecom device aggregates with ticket bookings into per-place
crowd estimates, time series, recommendations and dashboard KPIs.
"""

__version__ = "1.0.0"
