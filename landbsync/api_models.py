from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .aliases import RECORD_TYPE_A, Endpoint

MEDIA_TYPE = "application/external.dns.webhook+json;version=1"


class ProviderSpecificProperty(BaseModel):
    name: str
    value: str = ""


class EndpointModel(BaseModel):
    """ExternalDNS endpoint as sent over the webhook wire."""

    model_config = ConfigDict(populate_by_name=True)

    dns_name: str = Field(..., alias="dnsName", description="Fully qualified DNS name")
    targets: list[str] = Field(default_factory=list)
    record_type: str = Field(RECORD_TYPE_A, alias="recordType")
    set_identifier: str = Field("", alias="setIdentifier")
    record_ttl: int = Field(0, alias="recordTTL", ge=0)
    labels: dict[str, str] = Field(default_factory=dict)
    provider_specific: list[ProviderSpecificProperty] = Field(default_factory=list, alias="providerSpecific")

    @field_validator("targets", "labels", "provider_specific", mode="before")
    @classmethod
    def _null_is_empty(cls, v: Any, info: ValidationInfo) -> Any:
        # Go encodes empty slices and maps as null.
        if v is None:
            return {} if info.field_name == "labels" else []
        return v

    def to_endpoint(self) -> Endpoint:
        return Endpoint(
            dns_name=self.dns_name,
            record_type=self.record_type,
            targets=tuple(self.targets),
            set_identifier=self.set_identifier,
            record_ttl=self.record_ttl,
            labels=dict(self.labels),
            provider_specific=tuple((p.name, p.value) for p in self.provider_specific),
        )

    @classmethod
    def from_endpoint(cls, ep: Endpoint) -> "EndpointModel":
        return cls(
            dns_name=ep.dns_name,
            targets=list(ep.targets),
            record_type=ep.record_type,
            set_identifier=ep.set_identifier,
            record_ttl=ep.record_ttl,
            labels=dict(ep.labels),
            provider_specific=[ProviderSpecificProperty(name=n, value=v) for n, v in ep.provider_specific],
        )

    def wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Changes(BaseModel):
    """Plan produced by ExternalDNS for POST /records."""

    model_config = ConfigDict(populate_by_name=True)

    create: list[EndpointModel] = Field(default_factory=list, alias="Create")
    update_old: list[EndpointModel] = Field(default_factory=list, alias="UpdateOld")
    update_new: list[EndpointModel] = Field(default_factory=list, alias="UpdateNew")
    delete: list[EndpointModel] = Field(default_factory=list, alias="Delete")

    @field_validator("create", "update_old", "update_new", "delete", mode="before")
    @classmethod
    def _null_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class DomainFilter(BaseModel):
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
