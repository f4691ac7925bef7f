"""Collect infrastructure assets from GCP, Azure and the local host as asset events."""

__version__ = "0.1.0"

__all__ = [
    "assets",
    "gcp_util",
    "gcp_vpc",
    "gcp_compute",
    "gcp_gke",
    "gcp_input",
    "azure_vm",
    "azure_input",
    "hostdata",
    "inputs",
]