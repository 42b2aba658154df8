# Strongbox - Main Package
#
# Local secret store: named credentials encrypted at rest under one master
# password (PBKDF2-SHA256 + AES-256-GCM, one file per secret), served over
# a small JSON API.

__version__ = "0.1.0"
__author__ = "Strongbox Team"
__description__ = "Local encrypted secret store"

__all__ = ["__version__"]
