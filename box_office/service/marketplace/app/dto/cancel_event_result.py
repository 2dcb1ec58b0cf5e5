from typing import List

import attrs


@attrs.define
class CancelEventResult:
    event_id: int
    refunded_payment_ids: List[int] = attrs.field(factory=list)
    failed_payment_ids: List[int] = attrs.field(factory=list)
