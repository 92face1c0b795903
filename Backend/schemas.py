from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VariableType(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Optional[str] = None
    composite_bag_items: List[Dict[str, Any]] = Field(default_factory=list, alias="compositeBagItems")


class ContextVariable(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Union[VariableType, str, None] = None
    entity: bool = False
    value: Any = None


class RequestContext(BaseModel):
    model_config = ConfigDict(extra="allow")

    variables: Dict[str, ContextVariable] = Field(default_factory=dict)


class InboundMessage(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    channel_conversation: Optional[Dict[str, Any]] = Field(default=None, alias="channelConversation")
    message_payload: Any = Field(default=None, alias="messagePayload")


class InvocationRequest(BaseModel):
    """Body of a component invocation request."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    bot_id: Optional[str] = Field(default=None, alias="botId")
    platform_version: str = Field(default="1.0", alias="platformVersion")
    state: Optional[str] = None
    context: RequestContext = Field(default_factory=RequestContext)
    properties: Dict[str, Any] = Field(default_factory=dict)
    message: Optional[InboundMessage] = None

    @model_validator(mode="after")
    def _check_state(self):
        if self.state is not None and not self.state.strip():
            raise ValueError("'state' must not be blank when provided")
        return self
