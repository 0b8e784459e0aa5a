"""
Model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

# Account first - audit events reference identity_account
from rwandabill.modules.identity.models import Account, BootstrapClaim  # noqa: F401

from rwandabill.modules.audit.models import AuditEvent  # noqa: F401
