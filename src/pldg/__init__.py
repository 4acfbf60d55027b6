"""PLDG dashboard data layer.

Retrieves cohort engagement datasets from interchangeable sources with
failover, health reporting and a time-boxed result cache.
"""

__version__ = "0.3.0"
