# src/akshealth/cli.py
"""AKS health check CLI."""

import asyncio
import sys
import click
from pathlib import Path
import structlog
import yaml
from pydantic_settings import SettingsError

from akshealth.config.settings import Settings
from akshealth.core.exceptions import HealthCheckException
from akshealth.core.utils import setup_logging, split_csv
from akshealth.discovery.inventory_builder import InventoryBuilder
from akshealth.engine.evaluation_engine import EvaluationEngine
from akshealth.models import AuditConfiguration
from akshealth.reporting import ConsoleReporter, findings_to_json
from akshealth.rules import build_default_registry

logger = structlog.get_logger(__name__)


@click.command(name="aks-healthcheck")
@click.option('--resource-group', '-g', required=True, help='Resource group of AKS cluster')
@click.option('--name', '-n', 'cluster_name', required=True, help='Name of AKS cluster')
@click.option('--image-registries', '-r', default=None,
              help='A comma-separated list of Azure Container Registry names used with the cluster')
@click.option('--ignore-namespaces', '-i', default=None,
              help='A comma-separated list of namespaces to ignore when doing analysis')
@click.option('--required-labels', default=None,
              help='A comma-separated list of label keys every resource is expected to carry')
@click.option('--output-json', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Also write the findings to this JSON file')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def healthcheck(resource_group, cluster_name, image_registries, ignore_namespaces,
                required_labels, output_json, debug):
    """
    Healthchecks an AKS cluster against best practices.
    
    Reads cluster, node pool, registry and Kubernetes state, then reports
    findings in four categories: Development, Image Management, Cluster Setup
    and Disaster Recovery. Nothing in the cluster is modified.
    
    Configure Azure access in your environment or .env file:
        AZURE_SUBSCRIPTION_ID=your-subscription-id
        AZURE_TENANT_ID / AZURE_CLIENT_ID / AZURE_CLIENT_SECRET (optional service principal)
    
    Example:
        aks-healthcheck -g my-rg -n my-cluster -r myacr -i kube-system,gatekeeper-system
    """
    
    async def run_healthcheck():
        try:
            settings = Settings.create_from_env()
            log_level = "DEBUG" if debug else settings.log_level.value
            setup_logging(settings.log_config_path, log_level=log_level)
            
            labels = split_csv(required_labels) or frozenset(settings.audit.required_labels)
            configuration = AuditConfiguration.from_cli(
                resource_group,
                cluster_name,
                image_registries=image_registries,
                ignore_namespaces=ignore_namespaces,
                required_labels=labels,
                verification_timeout_seconds=settings.audit.verification_timeout_seconds,
                verification_concurrency=settings.audit.verification_concurrency,
            )
        # pydantic ValidationError is a ValueError
        except (SettingsError, ValueError, OSError, yaml.YAMLError) as e:
            click.echo(click.style(f"Invalid configuration: {e}", fg="red"), err=True)
            return 1
        
        try:
            config = {
                "azure": settings.azure.model_dump(),
                "kubernetes": settings.kubernetes.model_dump(),
                "audit": settings.audit.model_dump(),
            }
            
            click.echo(click.style(f"Downloading infrastructure data for {cluster_name}...", fg="blue"))
            async with InventoryBuilder(config) as builder:
                inventory = await builder.build(configuration)
                engine = EvaluationEngine(build_default_registry(builder.verifier))
                findings = await engine.run(inventory, configuration)
            
        except HealthCheckException as e:
            click.echo(click.style(f"An unexpected error occurred: {e}", fg="red"), err=True)
            logger.debug("Health check failed", error=str(e), details=e.details, exc_info=True)
            return 1
        except Exception as e:
            click.echo(click.style(f"An unexpected error occurred: {e}", fg="red"), err=True)
            if debug:
                import traceback
                click.echo(traceback.format_exc(), err=True)
            return 1

        ConsoleReporter().render(findings)
        
        if output_json:
            output_json.parent.mkdir(parents=True, exist_ok=True)
            output_json.write_text(findings_to_json(findings))
            click.echo(f"Findings written to {output_json}")
        
        return 0
    
    sys.exit(asyncio.run(run_healthcheck()))


if __name__ == '__main__':
    healthcheck()
