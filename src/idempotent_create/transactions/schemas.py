"""Request and response bodies for the transactions API.

Both use camelCase on the wire (``consumerId``, ``createdAt``) and accept
snake_case field names from Python code.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TransactionType(str, Enum):
    PAYMENT = "payment"
    WITHDRAWAL = "withdrawal"
    DISBURSEMENT = "disbursement"


class TransactionRequest(BaseModel):
    """Body of ``POST /api/transactions``.

    Attributes:
        type: payment, withdrawal or disbursement.
        amount: Non-negative amount.
        consumer_id: UUID of the consumer (``consumerId`` on the wire).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: TransactionType
    amount: float = Field(..., ge=0, description="Amount must be a positive number")
    consumer_id: UUID


class TransactionResponse(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: str
    type: str
    amount: float
    status: str
    consumer_id: str
    created_at: datetime
    updated_at: datetime | None = None
