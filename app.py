import aws_cdk as cdk
from config import get_config
from stacks.certificate_stack import CertificateStack

app = cdk.App()
config = get_config(app)

# =================================================================
# CERTIFICATE STACK
# =================================================================
# Requests the ACM certificate, publishes the DNS validation records
# and exports the validated certificate ARN.
cert_env = cdk.Environment(account=config.account, region=config.region)
CertificateStack(
    app, f"Certificate-{config.name}",
    config=config,
    env=cert_env
)

app.synth()
