import importlib.util
import os

import aws_cdk as cdk
import pytest

from components.dns_adapter import DnsAdapter

HANDLER_PATH = os.path.join(
    os.path.dirname(__file__), "..", "..", "lambda", "dns_validated_certificate", "main.py"
)


class RecordingDnsAdapter(DnsAdapter):
    """Declares placeholder records and remembers every call in order."""
    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def create_record(self, scope, id, *, type, name, value):
        self.calls.append(id)
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise RuntimeError(f"record {id} rejected by DNS provider")
        return cdk.CfnResource(scope, id,
            type="Test::Dns::Record",
            properties={"Type": type, "Name": name, "Value": value}
        )


@pytest.fixture
def stack():
    app = cdk.App()
    return cdk.Stack(app, "TestStack")


@pytest.fixture
def dns():
    return RecordingDnsAdapter()


@pytest.fixture
def handler(monkeypatch):
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    spec = importlib.util.spec_from_file_location("certificate_handler", HANDLER_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def recording_adapter():
    return RecordingDnsAdapter
