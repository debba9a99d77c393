"""Pydantic records for customer leads."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from ..conversations.schemas import Conversation


class Lead(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    lead_id: str
    name: str | None = None
    email: str | None = None
    mobile_number: str | None = None
    land_line: str | None = None
    zip: str | None = None
    date_of_birth: date | None = None
    eligible_product_types: list[str] = Field(default_factory=list)
    interested_product_types: list[str] = Field(default_factory=list)
    offered_products: list[str] = Field(default_factory=list)
    interested_products: list[str] = Field(default_factory=list)
    web_push_subscription: list[str] = Field(default_factory=list)
    android_push_subscription: list[str] = Field(default_factory=list)
    ios_push_subscription: list[str] = Field(default_factory=list)
    is_agent: bool | None = None
    last_conversations_by_channel: list[Conversation] = Field(default_factory=list)
