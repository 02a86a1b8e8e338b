"""Liveness and readiness probes.

Usage
-----
Import health resources for route registration::

    from hookbridge.api.health.resources import HealthResource, ReadyResource
"""
