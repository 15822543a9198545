"""
Erreurs métier du checkout et du webhook.
Chaque erreur porte son code HTTP et le message renvoyé au client ({"error": message}).
"""
from typing import Any, Dict, Optional


class PaymentsError(Exception):
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class ConfigurationError(PaymentsError):
    """Secret ou URL obligatoire absent: échec avant toute écriture."""
    status_code = 500


class EmptyCartError(PaymentsError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("No items")


class NoPurchasableItemsError(PaymentsError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("No purchasable items")


class WebhookSignatureError(PaymentsError):
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__("Webhook signature verification failed", detail=detail)


class SettlementError(PaymentsError):
    """Échec du règlement: 500 pour que Stripe relivre la notification."""
    status_code = 500
