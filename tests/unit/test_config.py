import aws_cdk as cdk
import pytest
from aws_cdk import RemovalPolicy

from config import EnvConfig, get_config, get_required_env, parse_names


@pytest.fixture
def prod_env(monkeypatch):
    monkeypatch.setenv("PROD_ACCOUNT", "123456789012")
    monkeypatch.setenv("PROD_REGION", "us-east-1")
    monkeypatch.setenv("PROD_DOMAIN_NAME", "example.com")
    monkeypatch.setenv("PROD_ALTERNATIVE_NAMES", "www.example.com, api.example.com,")
    monkeypatch.delenv("PROD_HOSTED_ZONE", raising=False)


def test_get_config_reads_prefixed_variables(prod_env):
    config = get_config(cdk.App(context={"env": "prod"}))

    assert config.name == "prod"
    assert config.account == "123456789012"
    assert config.region == "us-east-1"
    assert config.domain_name == "example.com"
    assert config.alternative_names == ["www.example.com", "api.example.com"]
    assert config.hosted_zone is None
    assert config.removal_policy == RemovalPolicy.RETAIN


def test_get_config_defaults_to_dev(monkeypatch):
    monkeypatch.setenv("DEV_ACCOUNT", "123456789012")
    monkeypatch.setenv("DEV_REGION", "eu-west-1")
    monkeypatch.setenv("DEV_DOMAIN_NAME", "dev.example.com")
    monkeypatch.setenv("DEV_HOSTED_ZONE", "dev.example.com")
    monkeypatch.delenv("DEV_ALTERNATIVE_NAMES", raising=False)

    config = get_config(cdk.App())

    assert config.name == "dev"
    assert config.alternative_names == []
    assert config.hosted_zone == "dev.example.com"
    assert config.removal_policy == RemovalPolicy.DESTROY


def test_missing_required_variable(monkeypatch):
    monkeypatch.delenv("STAGING_ACCOUNT", raising=False)

    with pytest.raises(RuntimeError, match="STAGING_ACCOUNT"):
        get_required_env("STAGING_ACCOUNT")


@pytest.mark.parametrize("value, expected", [
    (None, []),
    ("", []),
    ("a.example.com", ["a.example.com"]),
    (" a.example.com , ,b.example.com ", ["a.example.com", "b.example.com"]),
])
def test_parse_names(value, expected):
    assert parse_names(value) == expected


def test_env_config_defaults():
    config = EnvConfig("qa", "123456789012", "us-east-1", "example.com")

    assert config.alternative_names == []
    assert config.removal_policy == RemovalPolicy.DESTROY
