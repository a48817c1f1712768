"""Azure Network Designer CLI"""

import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
import yaml

from .config import RuntimeConfig, load_config
from .core import DisplayRenderer, setup_logging
from .models import RequirementFlags
from .normalize import ModelInputError, load_model_file, normalize_model
from .templates import template_web_paas

app = typer.Typer(
    name="az-design",
    help="Azure hub-and-spoke network topology designer",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def _global(
    output_format: Optional[str] = typer.Option(
        None, "--format", help="table|json|yaml"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    log_file: Optional[str] = typer.Option(
        None, "--log-file", help="Write a debug log to this file"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", help="JSON or YAML settings file"
    ),
):
    RuntimeConfig.reset()
    try:
        load_config(config)
        if output_format is not None:
            RuntimeConfig.set_output_format(output_format)
    except (OSError, ValueError, yaml.YAMLError) as e:
        DisplayRenderer(console).error(str(e))
        raise typer.Exit(1)
    if debug:
        RuntimeConfig.set_debug(True)
    if log_file:
        RuntimeConfig.set_log_file(log_file)
    setup_logging()


def _flags(
    region: Optional[str],
    vpn: bool,
    waf: bool,
    firewall: bool,
    bastion: bool,
    express_route: bool,
    pe_sql: bool,
    pe_storage: bool,
    pe_kv: bool,
    dr_region: Optional[str],
    traffic_manager: bool,
    app_sku: Optional[str],
    app_instances: Optional[int],
    storage_redundancy: Optional[str],
    sql_tier: Optional[str],
) -> RequirementFlags:
    try:
        return RequirementFlags(
            region=region or RuntimeConfig.get_default_region(),
            vpn=vpn,
            waf=waf,
            firewall=firewall,
            bastion=bastion,
            express_route_ready=express_route,
            private_endpoint_sql=pe_sql,
            private_endpoint_storage=pe_storage,
            private_endpoint_key_vault=pe_kv,
            dr_region=dr_region,
            traffic_manager=traffic_manager,
            app_service_sku=app_sku,
            app_instances=app_instances,
            storage_redundancy=storage_redundancy,
            sql_tier=sql_tier,
        )
    except ValueError as e:
        DisplayRenderer(console).error(f"Invalid requirement flags: {e}")
        raise typer.Exit(1)


# Shared flag options for design and template
REGION = typer.Option(None, "--region", "-r", help="Primary Azure region")
VPN = typer.Option(False, "--vpn", help="Site-to-site VPN to on-premises")
WAF = typer.Option(False, "--waf", help="Application Gateway with WAF")
FIREWALL = typer.Option(False, "--firewall", help="Azure Firewall in the hub")
BASTION = typer.Option(False, "--bastion", help="Azure Bastion in the hub")
EXPRESS_ROUTE = typer.Option(False, "--express-route", help="ExpressRoute-ready hub")
PE_SQL = typer.Option(False, "--pe-sql", help="Private Endpoint for SQL DB")
PE_STORAGE = typer.Option(False, "--pe-storage", help="Private Endpoint for Storage")
PE_KV = typer.Option(False, "--pe-kv", help="Private Endpoint for Key Vault")
DR_REGION = typer.Option(None, "--dr-region", help="Secondary region for DR")
TRAFFIC_MANAGER = typer.Option(False, "--traffic-manager", help="Global Traffic Manager")
APP_SKU = typer.Option(None, "--app-sku", help="App Service plan SKU")
APP_INSTANCES = typer.Option(None, "--app-instances", help="App Service instances")
STORAGE_REDUNDANCY = typer.Option(
    None, "--storage-redundancy", help="LRS|ZRS|GZRS"
)
SQL_TIER = typer.Option(None, "--sql-tier", help="GP|BC")


@app.command("design")
def design(
    input_file: Optional[Path] = typer.Option(
        None, "--input", "-i", help="JSON or YAML model to normalize (template if omitted)"
    ),
    region: Optional[str] = REGION,
    vpn: bool = VPN,
    waf: bool = WAF,
    firewall: bool = FIREWALL,
    bastion: bool = BASTION,
    express_route: bool = EXPRESS_ROUTE,
    pe_sql: bool = PE_SQL,
    pe_storage: bool = PE_STORAGE,
    pe_kv: bool = PE_KV,
    dr_region: Optional[str] = DR_REGION,
    traffic_manager: bool = TRAFFIC_MANAGER,
    app_sku: Optional[str] = APP_SKU,
    app_instances: Optional[int] = APP_INSTANCES,
    storage_redundancy: Optional[str] = STORAGE_REDUNDANCY,
    sql_tier: Optional[str] = SQL_TIER,
):
    """Normalize a model (or the template) and show the result"""
    flags = _flags(
        region, vpn, waf, firewall, bastion, express_route, pe_sql, pe_storage,
        pe_kv, dr_region, traffic_manager, app_sku, app_instances,
        storage_redundancy, sql_tier,
    )
    try:
        raw = load_model_file(input_file) if input_file else template_web_paas(flags)
    except ModelInputError as e:
        DisplayRenderer(console).error(str(e))
        raise typer.Exit(1)

    model = normalize_model(raw, flags)
    renderer = DisplayRenderer(console)
    if not renderer.render(model.to_dict(), RuntimeConfig.get_output_format()):
        renderer.topology(model)


@app.command("template")
def template(
    region: Optional[str] = REGION,
    vpn: bool = VPN,
    waf: bool = WAF,
    firewall: bool = FIREWALL,
    bastion: bool = BASTION,
    express_route: bool = EXPRESS_ROUTE,
    pe_sql: bool = PE_SQL,
    pe_storage: bool = PE_STORAGE,
    pe_kv: bool = PE_KV,
    app_sku: Optional[str] = APP_SKU,
    app_instances: Optional[int] = APP_INSTANCES,
    storage_redundancy: Optional[str] = STORAGE_REDUNDANCY,
    sql_tier: Optional[str] = SQL_TIER,
):
    """Print the raw template for the given flags"""
    flags = _flags(
        region, vpn, waf, firewall, bastion, express_route, pe_sql, pe_storage,
        pe_kv, None, False, app_sku, app_instances, storage_redundancy, sql_tier,
    )
    data = template_web_paas(flags).model_dump(by_alias=True, exclude_none=True)
    fmt = RuntimeConfig.get_output_format()
    # a raw model has no table view
    DisplayRenderer(console).render(data, "json" if fmt == "table" else fmt)


@app.command("show-config")
def show_config():
    """Show current configuration"""
    settings = RuntimeConfig.as_dict()
    renderer = DisplayRenderer(console)
    if renderer.render(settings, RuntimeConfig.get_output_format()):
        return
    for key, value in settings.items():
        console.print(f"[bold]{key}:[/] {value if value is not None else '-'}")


if __name__ == "__main__":
    app()
