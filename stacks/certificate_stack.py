from aws_cdk import (
    Stack,
    CfnOutput
)
from constructs import Construct

from components.dns_adapter import Route53DnsAdapter
from components.dns_validated_certificate import DnsValidatedCertificate

class CertificateStack(Stack):
    """
    Handles SSL/TLS certificate creation and DNS validation.
    Note: Certificates used by CloudFront must be deployed in us-east-1.
    """
    def __init__(self, scope: Construct, construct_id: str, config, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # 1. Look up the Route53 zone serving the domain (root zone unless overridden)
        dns = Route53DnsAdapter.from_domain(self, "HostedZone",
            domain_name=config.domain_name,
            zone_name=config.hosted_zone
        )

        # 2. Request the certificate and publish one validation record per name
        self.certificate = DnsValidatedCertificate(self, "Certificate",
            domain_name=config.domain_name,
            alternative_names=config.alternative_names,
            dns=dns,
            removal_policy=config.removal_policy
        )

        CfnOutput(self, "CertificateArn", value=self.certificate.arn)
