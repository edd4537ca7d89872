# =======================================================================================
# authintegrate/__init__.py - Package Initialization
# =======================================================================================
"""
AuthIntegrate - Dual-Factor Access Control

Fingerprint devices report enrolment and access attempts; the server
stores them and pushes every event live to connected dashboards, which
reconcile the pushes with periodic REST polls.
"""

__version__ = "1.0.0"
__author__ = "AuthIntegrate Team"
