from typing import Optional

import attrs


@attrs.define
class PaymentMethod:
    """A card the gateway knows, referenced by its opaque account id"""

    gateway_account_id: str
    holder_name: str
    last4: str
    exp_month: int
    exp_year: int
    currency: str
    id: Optional[int] = None
