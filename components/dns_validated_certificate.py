import os
from typing import List, Optional, Sequence

from aws_cdk import (
    CustomResource,
    Duration,
    RemovalPolicy,
    Stack,
    Token,
    aws_iam as iam,
    aws_lambda as lambda_,
    custom_resources as cr
)
from constructs import Construct

from components.dns_adapter import DnsAdapter

COMPONENT_TYPE = "aws:acm:DnsValidatedCertificate"
REQUEST_RESOURCE_TYPE = "Custom::CertificateRequest"
VALIDATION_RESOURCE_TYPE = "Custom::CertificateValidation"
PROVIDER_ID = "CertificateProvider"

HANDLER_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "lambda", "dns_validated_certificate"
)


class CertificateProvider(Construct):
    """
    Custom resource provider serving both certificate resource types.
    One instance is shared per stack and validation timeout.
    """
    def __init__(self, scope: Construct, construct_id: str, total_timeout: Duration) -> None:
        super().__init__(scope, construct_id)

        # ACM does not support resource-level permissions for RequestCertificate
        acm_policy = iam.PolicyStatement(
            actions=["acm:RequestCertificate", "acm:DescribeCertificate", "acm:DeleteCertificate"],
            resources=["*"]
        )

        self.on_event_fn = lambda_.Function(self, "OnEventFn",
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="main.on_event",
            code=lambda_.Code.from_asset(HANDLER_DIR),
            timeout=Duration.minutes(1)
        )
        self.is_complete_fn = lambda_.Function(self, "IsCompleteFn",
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="main.is_complete",
            code=lambda_.Code.from_asset(HANDLER_DIR),
            timeout=Duration.minutes(1)
        )
        for fn in (self.on_event_fn, self.is_complete_fn):
            fn.add_to_role_policy(acm_policy)

        # Polling cadence and timeout are owned by the provider framework
        self.total_timeout = total_timeout
        self.provider = cr.Provider(self, "Provider",
            on_event_handler=self.on_event_fn,
            is_complete_handler=self.is_complete_fn,
            query_interval=Duration.seconds(15),
            total_timeout=total_timeout
        )

    @property
    def service_token(self) -> str:
        return self.provider.service_token

    @classmethod
    def of(cls, scope: Construct, total_timeout: Duration) -> "CertificateProvider":
        """
        Returns the stack's provider, creating it on first use.
        The construct id never changes: CloudFormation refuses to move an
        existing custom resource to a different service token.
        """
        stack = Stack.of(scope)
        existing = stack.node.try_find_child(PROVIDER_ID)
        if existing is None:
            return cls(stack, PROVIDER_ID, total_timeout)
        if existing.total_timeout.to_seconds() != total_timeout.to_seconds():
            raise ValueError(
                f"validation_timeout must match the stack's other certificates "
                f"({existing.total_timeout.to_human_string()})"
            )
        return existing


def covered_names(domain_name: str, alternative_names: Sequence[str]) -> List[str]:
    """
    Alternative names as ACM will cover them: duplicates and the primary
    domain removed (case-insensitively), first occurrence order kept.
    ACM returns exactly one validation option per name in `[domain_name] + result`.
    """
    seen = {domain_name.lower()}
    names = []
    for name in alternative_names:
        if name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)
    return names


class DnsValidatedCertificate(Construct):
    """
    ACM certificate validated through DNS records published by a pluggable adapter.

    Three resources are declared and ordered purely through data dependencies:
    1. The certificate request, whose attributes carry one validation option per name.
    2. One DNS record per validation option, created through `dns.create_record`.
    3. The validation wait, which depends on every record and resolves to the certificate ARN.
    """
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        domain_name: str,
        dns: DnsAdapter,
        alternative_names: Optional[Sequence[str]] = None,
        validation_timeout: Optional[Duration] = None,
        removal_policy: Optional[RemovalPolicy] = None,
        component_type: str = COMPONENT_TYPE
    ) -> None:
        super().__init__(scope, construct_id)
        self.node.add_metadata("component:type", component_type)

        if isinstance(alternative_names, str):
            raise ValueError("alternative_names must be a list of names, not a single string")
        alternative_names = list(alternative_names or [])
        # The record fan-out is fixed at synth time
        if Token.is_unresolved(alternative_names):
            raise ValueError("alternative_names must be a concrete list, not an unresolved token")
        alternative_names = covered_names(domain_name, alternative_names)

        provider = CertificateProvider.of(self, validation_timeout or Duration.minutes(75))

        # =================================================================
        # 1. CERTIFICATE REQUEST
        # =================================================================
        self.certificate = CustomResource(self, "Certificate",
            service_token=provider.service_token,
            resource_type=REQUEST_RESOURCE_TYPE,
            properties={
                "DomainName": domain_name,
                "SubjectAlternativeNames": alternative_names
            },
            removal_policy=removal_policy
        )

        # =================================================================
        # 2. VALIDATION RECORDS (one per covered name)
        # =================================================================
        self.records: List[Construct] = []
        for index in range(1 + len(alternative_names)):
            option = f"ValidationOptions.{index}"
            self.records.append(dns.create_record(self, f"ValidationRecord{index}",
                type=self.certificate.get_att_string(f"{option}.Type"),
                name=self.certificate.get_att_string(f"{option}.Name"),
                value=self.certificate.get_att_string(f"{option}.Value")
            ))

        # =================================================================
        # 3. VALIDATION WAIT
        # =================================================================
        self.validation = CustomResource(self, "Validation",
            service_token=provider.service_token,
            resource_type=VALIDATION_RESOURCE_TYPE,
            properties={"CertificateArn": self.certificate.ref}
        )
        self.validation.node.add_dependency(*self.records)

    @property
    def arn(self) -> str:
        """ARN of the certificate, resolved once ACM reports it as issued."""
        return self.validation.get_att_string("CertificateArn")
