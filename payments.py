"""
Payment gateway

Thin wrapper over Stripe PaymentIntents. Amounts cross this boundary in the
smallest currency unit; everything else in the app works in decimal units.
"""
import logging
import os
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

import stripe
from dotenv import load_dotenv
from pydantic import BaseModel

from errors import GatewayUnavailable, InternalError

load_dotenv()

logger = logging.getLogger(__name__)


class Authorization(BaseModel):
    id: str
    status: str
    client_secret: Optional[str] = None
    amount: int = 0
    currency: str = "usd"


def to_minor_units(amount: float) -> int:
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _to_authorization(intent) -> Authorization:
    return Authorization(
        id=intent.id,
        status=intent.status,
        client_secret=getattr(intent, "client_secret", None),
        amount=getattr(intent, "amount", None) or 0,
        currency=getattr(intent, "currency", None) or "usd",
    )


class PaymentGateway:
    def __init__(self, api_key: str):
        self.api_key = api_key

    def authorize(self, amount: int, currency: str, metadata: Dict[str, str]) -> Authorization:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except (stripe.APIConnectionError, stripe.AuthenticationError) as e:
            raise GatewayUnavailable(f"Payment service unreachable: {e.user_message or str(e)}")
        except stripe.StripeError as e:
            raise InternalError(f"Error creating payment intent: {e.user_message or str(e)}")
        return _to_authorization(intent)

    def retrieve(self, authorization_id: str) -> Authorization:
        try:
            intent = stripe.PaymentIntent.retrieve(authorization_id, api_key=self.api_key)
        except (stripe.APIConnectionError, stripe.AuthenticationError) as e:
            raise GatewayUnavailable(f"Payment service unreachable: {e.user_message or str(e)}")
        except stripe.StripeError as e:
            raise InternalError(f"Error retrieving payment intent: {e.user_message or str(e)}")
        return _to_authorization(intent)


def gateway_from_env() -> Optional[PaymentGateway]:
    api_key = os.getenv("STRIPE_SECRET_KEY")
    if not api_key:
        logger.warning("Stripe secret key not found, payment features will be disabled")
        return None
    return PaymentGateway(api_key)


gateway = gateway_from_env()


def get_gateway() -> Optional[PaymentGateway]:
    return gateway
