"""Pydantic schemas for data provider subscription requests.

Field names follow the browser client's camelCase on the wire.
"""

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DataProviderAction(str, enum.Enum):
    """Subscription actions a widget may send.

    Only UNSUBSCRIBE skips authorization; SUBSCRIBE and POLLING are authorized
    the same way. Any other action is rejected at validation (422) rather than
    being treated as a subscription.
    """

    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"
    POLLING = "POLLING"

    @classmethod
    def _missing_(cls, value: object):
        # Clients send "subscribe" / "unsubscribe" in any case
        if isinstance(value, str):
            for member in cls:
                if member.value == value.upper():
                    return member
        return None


class SubscriptionRequest(BaseModel):
    """A client's request to (un)subscribe a widget to its data feed.

    ``query_configuration`` is kept as a plain dict on purpose: the query
    assembler writes the final query into it in place.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: DataProviderAction
    dashboard_id: str | None = None
    username: str | None = None
    widget_name: str | None = None
    query_configuration: dict[str, Any] | None = Field(
        default=None, alias="dataProviderConfiguration"
    )


class AuthorizationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    authorized: bool
    query_configuration: dict[str, Any] | None = Field(
        default=None, alias="dataProviderConfiguration"
    )
