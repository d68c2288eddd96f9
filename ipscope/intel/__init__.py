"""Intel package: validation, edge metadata, lookups and reconciliation."""

from .edge import continent_name, datacenter_location, extract_edge_metadata
from .ip_utils import IPValidation, build_cache_key, resolve_client_ip, validate_ip
from .lookup import CachedLookup, LookupClient
from .models import EdgeMetadata, ExternalLookupResult, UnifiedRecord
from .reconcile import geolocation_view, network_view, reconcile, security_view
from .risk import assess_connection_quality, assess_location_accuracy, assess_threat_level

__all__ = [
    "CachedLookup",
    "EdgeMetadata",
    "ExternalLookupResult",
    "IPValidation",
    "LookupClient",
    "UnifiedRecord",
    "assess_connection_quality",
    "assess_location_accuracy",
    "assess_threat_level",
    "build_cache_key",
    "continent_name",
    "datacenter_location",
    "extract_edge_metadata",
    "geolocation_view",
    "network_view",
    "reconcile",
    "resolve_client_ip",
    "security_view",
    "validate_ip",
]
