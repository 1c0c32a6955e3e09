"""Ad package construction from a verified Flutterwave charge."""

import datetime as dt
import random
import string
import uuid

from adboost.models.ad_package import AdPackage, FlutterwaveReference
from adboost.models.flutterwave import ChargeData

AD_CODE_PREFIX = "AD"
AD_CODE_RANDOM_LENGTH = 11
AD_CODE_ALPHABET = string.ascii_uppercase + string.digits

TX_REF_PREFIX = "boost"
TX_REF_SEPARATOR = "_"

PACKAGE_ID_PREFIX = "ads_pkg"
PACKAGE_LIFETIME = dt.timedelta(days=7)


def generate_ad_code(rng: random.Random | None = None) -> str:
    """Generate a short human-scannable ad code, e.g. ``AD7K2M9QX4B1Z``.

    Codes are not checked for collisions against existing packages.
    """
    chooser = rng or random
    suffix = "".join(chooser.choices(AD_CODE_ALPHABET, k=AD_CODE_RANDOM_LENGTH))
    return f"{AD_CODE_PREFIX}{suffix}"


def parse_transaction_ref(tx_ref: str | None) -> str | None:
    """Recover the physical event ID from ``boost_<eventId>_<timestamp>``.

    Args:
        tx_ref: Merchant transaction reference.

    Returns:
        The event ID, or None if the reference has another shape.
    """
    if not tx_ref:
        return None

    parts = tx_ref.split(TX_REF_SEPARATOR)
    if len(parts) >= 3 and parts[0] == TX_REF_PREFIX and parts[1]:
        return parts[1]
    return None


def new_package_id(now: dt.datetime) -> str:
    """Timestamped package ID with a short random suffix."""
    millis = int(now.timestamp() * 1000)
    return f"{PACKAGE_ID_PREFIX}_{millis}_{uuid.uuid4().hex[:6]}"


def build_ad_package(
    charge: ChargeData,
    *,
    now: dt.datetime,
    ad_code: str | None = None,
) -> AdPackage:
    """Synthesize the package record for a verified charge.

    Args:
        charge: The ``data`` block of a successful verification result.
        now: Creation instant; expiry is exactly seven days later.
        ad_code: Pre-generated code (generated when omitted).

    Returns:
        AdPackage ready to persist.
    """
    return AdPackage(
        package_id=new_package_id(now),
        created_at=now,
        expires_at=now + PACKAGE_LIFETIME,
        total_amount_paid=charge.amount,
        payment_id=charge.id,
        ad_code=ad_code or generate_ad_code(),
        currency=charge.currency,
        customer_email=charge.customer.email,
        customer_name=charge.customer.name,
        webhook_processed_at=now,
        flutterwave_data=FlutterwaveReference(
            tx_ref=charge.tx_ref,
            flw_ref=charge.flw_ref,
            payment_type=charge.payment_type,
        ),
    )
