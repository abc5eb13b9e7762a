"""
Gluster Exporter

Prometheus exporter for GlusterFS clusters, driven by the gluster CLI.
"""

__version__ = "1.0.0"
