from abc import ABC, abstractmethod
from typing import Optional

import tldextract
from aws_cdk import Duration, aws_route53 as route53
from constructs import Construct

# Offline extractor: resolves the registrable domain from the bundled
# public suffix snapshot instead of fetching the list at synth time.
_extract = tldextract.TLDExtract(suffix_list_urls=())


class DnsAdapter(ABC):
    """
    Creates DNS records on behalf of a component.
    Implementations wrap one DNS provider and are chosen by the caller.
    """

    @abstractmethod
    def create_record(
        self,
        scope: Construct,
        id: str,
        *,
        type: str,
        name: str,
        value: str
    ) -> Construct:
        """
        Declares a single record and returns its construct handle.
        `type`, `name` and `value` may be unresolved tokens.
        """


class Route53DnsAdapter(DnsAdapter):
    """
    Publishes records into an existing Route53 hosted zone.
    """
    def __init__(self, hosted_zone: route53.IHostedZone, ttl: Optional[Duration] = None):
        self.hosted_zone = hosted_zone
        self.ttl = ttl or Duration.minutes(1)

    @classmethod
    def from_domain(
        cls,
        scope: Construct,
        id: str,
        domain_name: str,
        zone_name: Optional[str] = None
    ) -> "Route53DnsAdapter":
        """
        Looks up the hosted zone serving `domain_name`.
        Without an explicit `zone_name` the root zone is used ('example.com' for 'sub.example.com').
        """
        if not zone_name:
            zone_name = root_zone_name(domain_name)
        hosted_zone = route53.HostedZone.from_lookup(scope, id, domain_name=zone_name)
        return cls(hosted_zone)

    def create_record(self, scope, id, *, type, name, value):
        return route53.CfnRecordSet(scope, id,
            hosted_zone_id=self.hosted_zone.hosted_zone_id,
            name=name,
            type=type,
            ttl=str(int(self.ttl.to_seconds())),
            resource_records=[value]
        )


def root_zone_name(domain_name: str) -> str:
    extracted = _extract(domain_name)
    if not extracted.domain or not extracted.suffix:
        raise ValueError(f"Cannot derive a hosted zone from '{domain_name}'")
    return f"{extracted.domain}.{extracted.suffix}"
