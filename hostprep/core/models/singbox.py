"""
sing-box configuration model — the generated ``config.json``.

The installer only ever creates one shape: a UDP DNS resolver, a
single shadowsocks inbound and a sniff routing rule.  Unknown keys are
kept (``extra="allow"``) and inbounds of other types are carried as
``OtherInbound``, so an operator's hand edits survive a
parse → modify → serialize cycle.
"""

from __future__ import annotations

from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, model_validator

DEFAULT_METHOD = "2022-blake3-aes-128-gcm"


class DnsServer(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "udp"
    server: str = "1.1.1.1"


class DnsBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    servers: list[DnsServer] = Field(default_factory=lambda: [DnsServer()])


class Inbound(BaseModel):
    """The shadowsocks listener whose credentials the installer manages."""

    model_config = ConfigDict(extra="allow")

    type: str = "shadowsocks"
    listen: str = "::"
    listen_port: int = Field(ge=1, le=65535)
    method: str = DEFAULT_METHOD
    password: str = Field(min_length=1)


class OtherInbound(BaseModel):
    """Any other listener an operator added; kept as written."""

    model_config = ConfigDict(extra="allow")

    type: str


def _inbound_kind(value: Any) -> str:
    if isinstance(value, BaseModel):
        return "managed" if isinstance(value, Inbound) else "other"
    if isinstance(value, dict) and value.get("type", "shadowsocks") == "shadowsocks":
        return "managed"
    return "other"


AnyInbound = Annotated[
    Union[Annotated[Inbound, Tag("managed")], Annotated[OtherInbound, Tag("other")]],
    Discriminator(_inbound_kind),
]


class RouteRule(BaseModel):
    model_config = ConfigDict(extra="allow")

    action: str = "sniff"


class RouteBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    rules: list[RouteRule] = Field(default_factory=lambda: [RouteRule()])


class SingBoxConfig(BaseModel):
    """Root of ``config.json``."""

    model_config = ConfigDict(extra="allow")

    dns: DnsBlock = Field(default_factory=DnsBlock)
    inbounds: list[AnyInbound] = Field(min_length=1)
    route: RouteBlock = Field(default_factory=RouteBlock)

    @model_validator(mode="after")
    def _has_managed_inbound(self) -> SingBoxConfig:
        if not any(isinstance(i, Inbound) for i in self.inbounds):
            raise ValueError("no shadowsocks inbound")
        return self

    @property
    def primary_inbound(self) -> Inbound:
        """The first shadowsocks inbound; its credentials are managed."""
        return next(i for i in self.inbounds if isinstance(i, Inbound))
