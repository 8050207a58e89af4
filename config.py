import os
from typing import List, Optional
from dotenv import load_dotenv
from aws_cdk import RemovalPolicy

# Load environment variables from a .env file
load_dotenv()

class EnvConfig:
    """
    Stores environment-specific configuration for the certificate stack.
    """
    def __init__(
        self,
        env_name: str,
        account: str,
        region: str,
        domain: str,
        alternative_names: Optional[List[str]] = None,
        hosted_zone: Optional[str] = None
    ):
        self.name = env_name
        self.account = account
        self.region = region
        self.domain_name = domain
        self.alternative_names = alternative_names or []
        self.hosted_zone = hosted_zone

        # Certificate Lifecycle Policy:
        # In 'prod', the issued certificate outlives the stack.
        if env_name == 'prod':
            self.removal_policy = RemovalPolicy.RETAIN
        else:
            self.removal_policy = RemovalPolicy.DESTROY

def get_required_env(key: str) -> str:
    """
    Retrieves a required environment variable or raises a RuntimeError if missing.
    """
    value = os.getenv(key)
    if not value:
        raise RuntimeError(f"❌ MISSING CONFIG: Required environment variable '{key}' not found in .env")
    return value

def parse_names(value: Optional[str]) -> List[str]:
    """Splits a comma separated list, dropping blanks."""
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]

def get_config(scope) -> EnvConfig:
    """
    Factory function to generate the EnvConfig object based on CDK context.
    Usage: cdk deploy -c env=prod
    """
    # Default to 'dev' environment if no context is provided
    env_name = scope.node.try_get_context("env") or "dev"
    prefix = env_name.upper()

    print(f"🔍 Initializing certificate infrastructure for environment: {prefix}")

    # Load Mandatory Variables
    account = get_required_env(f"{prefix}_ACCOUNT")
    region = get_required_env(f"{prefix}_REGION")
    domain = get_required_env(f"{prefix}_DOMAIN_NAME")

    # Load Optional Variables
    alternative_names = parse_names(os.getenv(f"{prefix}_ALTERNATIVE_NAMES"))
    hosted_zone = os.getenv(f"{prefix}_HOSTED_ZONE")

    return EnvConfig(
        env_name=env_name,
        account=account,
        region=region,
        domain=domain,
        alternative_names=alternative_names,
        hosted_zone=hosted_zone
    )
