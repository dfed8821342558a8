"""veryfiable — verified public reviews on the Ethereum Attestation Service.

Two independent surfaces live here:

- ``veryfiable register-schema``: one-off registration of the Public Review schema.
- ``veryfiable api``: the HTTP service skeleton (see the top-level ``api`` package).
"""

from __future__ import annotations

__all__ = ["__version__", "SERVICE_NAME", "SERVICE_DESCRIPTION"]

__version__ = "0.1.0"

SERVICE_NAME = "Veryfiable Attestation Service"
SERVICE_DESCRIPTION = "Verified public reviews using EAS"
