"""Fixed hub-and-spoke templates.

The template is the local fallback input for the pipeline when no
synthesized model is available. It is returned as a ``RawModel`` and goes
through the same normalization as any upstream payload.
"""

from typing import Optional

from .models.flags import RequirementFlags
from .models.topology import RawModel

HUB_CIDR = "10.0.0.0/16"
SPOKE_CIDR = "10.1.0.0/16"


def _pip(pip_id: str, label: str) -> dict:
    return {
        "type": "PublicIP",
        "id": pip_id,
        "label": label,
        "sku": "Standard",
        "allocation": "Static",
    }


def _dns_zone(zone_name: str) -> dict:
    return {
        "type": "PrivateDnsZone",
        "id": "pdz_" + zone_name.replace(".", "_"),
        "label": zone_name,
        "zoneName": zone_name,
    }


def _private_endpoint(pe_id: str, target_type: str, target_id: str) -> dict:
    return {
        "type": "PrivateEndpoint",
        "id": pe_id,
        "label": f"PE → {target_type}",
        "targetResourceType": target_type,
        "targetResourceId": target_id,
        "subnetId": "sn_data",
    }


def template_web_paas(
    flags: RequirementFlags,
    hub_cidr: Optional[str] = None,
    spoke_cidr: Optional[str] = None,
) -> RawModel:
    """Web PaaS workload in one spoke behind a shared-services hub."""
    hub = {
        "id": "hub",
        "label": "Hub VNet",
        "kind": "hub",
        "cidr": hub_cidr or HUB_CIDR,
        "subnets": [
            {"id": "hub_infra", "cidr": "10.0.0.0/24", "purpose": "infra"},
            # shared by VPN and ExpressRoute gateways
            {"id": "GatewaySubnet", "cidr": "10.0.0.32/27", "purpose": "gateway"},
            {"id": "AzureFirewallSubnet", "cidr": "10.0.1.0/26", "purpose": "firewall"},
            {"id": "AzureBastionSubnet", "cidr": "10.0.1.64/26", "purpose": "bastion"},
        ],
    }
    spoke = {
        "id": "spoke_web",
        "label": "Spoke-Web",
        "kind": "spoke",
        "cidr": spoke_cidr or SPOKE_CIDR,
        "subnets": [
            {"id": "sn_pub", "cidr": "10.1.0.0/24", "purpose": "public"},
            {"id": "sn_app", "cidr": "10.1.1.0/24", "purpose": "app", "nsgId": "nsg_app"},
            {"id": "sn_data", "cidr": "10.1.2.0/24", "purpose": "data"},
            {"id": "AppGatewaySubnet", "cidr": "10.1.3.0/24", "purpose": "agw"},
        ],
    }

    resources: list[dict] = []
    if flags.waf:
        resources.append(_pip("pip_agw", "PIP (AppGW)"))
    if flags.firewall:
        resources.append(_pip("pip_afw", "PIP (Firewall)"))
    if flags.bastion:
        resources.append(_pip("pip_bastion", "PIP (Bastion)"))

    if flags.firewall:
        resources.append(
            {"type": "AzureFirewall", "id": "afw", "label": "Azure Firewall", "pipId": "pip_afw"}
        )
    if flags.bastion:
        resources.append(
            {"type": "Bastion", "id": "bastion", "label": "Azure Bastion", "pipId": "pip_bastion"}
        )
    if flags.vpn:
        resources.append(
            {
                "type": "VpnGateway",
                "id": "vpngw",
                "label": "VPN Gateway",
                "sku": "VpnGw2AZ",
                "activeActive": True,
            }
        )
    if flags.express_route_ready:
        resources.append(
            {"type": "ExpressRouteGateway", "id": "ergw", "label": "ExpressRoute GW", "sku": "ErGw2AZ"}
        )
    if flags.waf:
        resources.append(
            {
                "type": "ApplicationGateway",
                "id": "agw",
                "label": "App Gateway (WAF_v2)",
                "waf": True,
                "zoneRedundant": True,
                "pipId": "pip_agw",
                "subnetId": "AppGatewaySubnet",
            }
        )

    resources.extend(
        [
            {
                "type": "AppService",
                "id": "appsvc",
                "label": "App Service",
                "sku": flags.app_service_sku or "P1v3",
                "instances": flags.app_instances or 2,
                "planName": "asp_spoke_web",
            },
            {
                "type": "SqlDb",
                "id": "sqldb",
                "label": "Azure SQL DB",
                "tier": flags.sql_tier or "BC",
                "zoneRedundant": True,
                "serverName": "sql_spoke_web",
            },
            {
                "type": "Storage",
                "id": "st",
                "label": "Storage",
                "redundancy": flags.storage_redundancy or "ZRS",
            },
            {"type": "KeyVault", "id": "kv", "label": "Key Vault", "privateEndpoint": True},
        ]
    )

    endpoints, zones = [], []
    if flags.private_endpoint_sql:
        endpoints.append(_private_endpoint("pe_sql", "SqlDb", "sqldb"))
        zones.append(_dns_zone("privatelink.database.windows.net"))
    if flags.private_endpoint_storage:
        endpoints.append(_private_endpoint("pe_st", "Storage", "st"))
        zones.append(_dns_zone("privatelink.blob.core.windows.net"))
    if flags.private_endpoint_key_vault:
        endpoints.append(_private_endpoint("pe_kv", "KeyVault", "kv"))
        zones.append(_dns_zone("privatelink.vaultcore.azure.net"))
    resources.extend(endpoints + zones)

    if flags.firewall:
        resources.append(
            {
                "type": "RouteTable",
                "id": "rt_spoke_default",
                "label": "RT Spoke → FW",
                "routes": [
                    {
                        "name": "defaultToFW",
                        "addressPrefix": "0.0.0.0/0",
                        "nextHopType": "VirtualAppliance",
                        "nextHopIpAddress": "10.0.1.4",
                    }
                ],
            }
        )
        for subnet in spoke["subnets"]:
            if subnet["id"] in ("sn_app", "sn_data"):
                subnet["routeTableId"] = "rt_spoke_default"

    resources.append(
        {
            "type": "NetworkSecurityGroup",
            "id": "nsg_app",
            "label": "NSG (App)",
            "rules": [
                {
                    "name": "allow-https-out",
                    "priority": 100,
                    "direction": "Outbound",
                    "access": "Allow",
                    "protocol": "*",
                    "source": "*",
                    "destination": "*",
                    "port": "443",
                }
            ],
        }
    )

    peerings = [
        {
            "fromVnetId": "hub",
            "toVnetId": "spoke_web",
            "allowGatewayTransit": True,
            "allowVnetAccess": True,
            "allowForwardedTraffic": True,
        },
        {
            "fromVnetId": "spoke_web",
            "toVnetId": "hub",
            "useRemoteGateways": True,
            "allowVnetAccess": True,
            "allowForwardedTraffic": True,
        },
    ]

    # Drawn by the template author; the pipeline rebuilds edges regardless
    entry = "agw" if flags.waf else "appsvc"
    edges: list[dict] = []
    if flags.vpn:
        edges.append({"from": "onprem", "to": "vpngw", "kind": "l3"})
        edges.append({"from": "vpngw", "to": "afw" if flags.firewall else entry, "kind": "l3"})
    if flags.firewall:
        edges.append({"from": "afw", "to": entry, "kind": "l3"})
    if flags.waf:
        edges.append({"from": "agw", "to": "appsvc", "kind": "l7"})
    edges.extend(
        [
            {"from": "appsvc", "to": "sqldb", "kind": "l7"},
            {"from": "appsvc", "to": "st", "kind": "l7"},
            {"from": "sqldb", "to": "kv", "kind": "l7"},
            {"from": "st", "to": "kv", "kind": "l7"},
        ]
    )

    notes = [f"Region: {flags.region}"] if flags.region else []
    if flags.vpn:
        notes.append("Site-to-site VPN uses GatewaySubnet; ExpressRoute can share it later.")
    if flags.firewall:
        notes.append("Spoke default route goes through the Firewall (UDR).")
    if flags.waf:
        notes.append("App Gateway runs WAF_v2 in its dedicated subnet.")
    notes.append("Each Private Endpoint needs its Private DNS zone linked to the VNets.")

    return RawModel(
        region=flags.region,
        hub=hub,
        spokes=[spoke],
        peerings=peerings,
        resources=resources,
        edges=edges,
        notes=notes,
    )
