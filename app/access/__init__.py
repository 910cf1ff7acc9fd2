from app.access.ledger import EntitlementLedger
from app.access.service import ActivationCodeService

__all__ = ["ActivationCodeService", "EntitlementLedger"]
