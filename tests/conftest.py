"""Shared pytest fixtures"""

import logging

import pytest
from rich.console import Console
from io import StringIO

from azure_network_designer.config import RuntimeConfig
from azure_network_designer.models import RawModel, RequirementFlags


@pytest.fixture(autouse=True)
def reset_runtime_config():
    """Reset RuntimeConfig and package log handlers around each test."""
    RuntimeConfig.reset()
    yield
    RuntimeConfig.reset()
    package_logger = logging.getLogger("azure_network_designer")
    for handler in list(package_logger.handlers):
        handler.close()
    package_logger.handlers.clear()


@pytest.fixture
def mock_console():
    """Create a mock console that captures output"""
    output = StringIO()
    console = Console(file=output, force_terminal=True, width=120)
    console._output = output
    return console


@pytest.fixture
def all_flags():
    """Every feature switched on, with DR and Traffic Manager"""
    return RequirementFlags(
        region="japaneast",
        vpn=True,
        waf=True,
        firewall=True,
        bastion=True,
        express_route_ready=True,
        private_endpoint_sql=True,
        private_endpoint_storage=True,
        private_endpoint_key_vault=True,
        dr_region="japanwest",
        traffic_manager=True,
    )


@pytest.fixture
def bare_hub_raw():
    """Hub without subnets and one spoke with workload subnets"""
    return RawModel.model_validate(
        {
            "region": "japaneast",
            "hub": {"id": "hub", "cidr": "10.0.0.0/16"},
            "spokes": [
                {
                    "id": "spoke1",
                    "cidr": "10.1.0.0/16",
                    "subnets": [
                        {"id": "app", "cidr": "10.1.1.0/24", "purpose": "app"},
                        {"id": "data", "cidr": "10.1.2.0/24", "purpose": "data"},
                    ],
                }
            ],
        }
    )


@pytest.fixture
def paas_raw():
    """Workload resources in a spoke, no network edge services"""
    return RawModel.model_validate(
        {
            "region": "japaneast",
            "vnets": [
                {"id": "hub", "kind": "hub", "cidr": "10.0.0.0/16"},
                {
                    "id": "spoke1",
                    "kind": "spoke",
                    "cidr": "10.1.0.0/16",
                    "subnets": [
                        {"id": "app", "cidr": "10.1.1.0/24", "purpose": "app"},
                        {"id": "data", "cidr": "10.1.2.0/24", "purpose": "data"},
                    ],
                },
            ],
            "resources": [
                {"type": "App Service", "id": "web", "label": "Web"},
                {"type": "Azure SQL Database", "id": "db", "label": "DB"},
                {"type": "Blob Storage", "id": "st", "label": "Storage"},
                {"type": "Key Vault", "id": "kv", "label": "Vault"},
            ],
        }
    )
