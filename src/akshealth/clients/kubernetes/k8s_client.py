# src/akshealth/clients/kubernetes/k8s_client.py
"""Kubernetes client that lists the objects audited by the health check."""

from typing import Dict, Any, List, Optional
import yaml
import structlog
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from akshealth.core.base_client import BaseClient
from akshealth.core.exceptions import ClientConnectionException, DiscoveryException
from akshealth.core.utils import retry_with_backoff

logger = structlog.get_logger(__name__)

GATEKEEPER_GROUP = "templates.gatekeeper.sh"
CONSTRAINT_TEMPLATE_PLURAL = "constrainttemplates"
CONSTRAINT_TEMPLATE_CRD = f"{CONSTRAINT_TEMPLATE_PLURAL}.{GATEKEEPER_GROUP}"


class KubernetesClient(BaseClient):
    """Lists cluster objects and returns them in Kubernetes API (camelCase) shape."""
    
    def __init__(self, 
                 config_dict: Dict[str, Any],
                 kubeconfig_path: Optional[str] = None,
                 context: Optional[str] = None,
                 kubeconfig_data: Optional[bytes] = None,
                 cluster_name: Optional[str] = None):
        super().__init__(config_dict, "KubernetesClient")
        self.kubeconfig_path = kubeconfig_path
        self.context = context
        self.kubeconfig_data = kubeconfig_data
        self.cluster_name = cluster_name or config_dict.get("cluster_name", "unknown")
        
        self.api_client = None
        self.v1 = None
        self.apps_v1 = None
        self.autoscaling_v2 = None
        self.apiextensions_v1 = None
        self.custom_objects = None
    
    async def connect(self) -> None:
        """Connect to Kubernetes cluster."""
        try:
            if self.kubeconfig_data:
                kubeconfig_dict = yaml.safe_load(self.kubeconfig_data.decode('utf-8'))
                self.api_client = config.new_client_from_config_dict(kubeconfig_dict, context=self.context)
                self.logger.info("Loaded kubeconfig from cluster credentials")
            else:
                self.api_client = config.new_client_from_config(
                    config_file=self.kubeconfig_path, context=self.context
                )
                self.logger.info(f"Loaded kubeconfig from {self.kubeconfig_path or 'default location'}")
            
            self.v1 = client.CoreV1Api(self.api_client)
            self.apps_v1 = client.AppsV1Api(self.api_client)
            self.autoscaling_v2 = client.AutoscalingV2Api(self.api_client)
            self.apiextensions_v1 = client.ApiextensionsV1Api(self.api_client)
            self.custom_objects = client.CustomObjectsApi(self.api_client)
            
            self._connected = True
            self.logger.info(f"Kubernetes client connected to cluster: {self.cluster_name}")
            
        except Exception as e:
            raise ClientConnectionException("Kubernetes", f"Connection failed: {e}")
    
    async def disconnect(self) -> None:
        """Disconnect from Kubernetes cluster."""
        if self.api_client:
            self.api_client.close()
        self._connected = False
        self.logger.info("Kubernetes client disconnected")
    
    def _serialize(self, items) -> List[Dict[str, Any]]:
        return [self.api_client.sanitize_for_serialization(item) for item in items]
    
    async def list_all_resources(self) -> Dict[str, List[Dict[str, Any]]]:
        """List every namespace-scoped collection the rules read, plus namespaces."""
        self._ensure_connected("Kubernetes")
        
        resources = {
            'namespaces': await self.list_namespaces(),
            'pods': await self.list_pods(),
            'deployments': await self.list_deployments(),
            'services': await self.list_services(),
            'config_maps': await self.list_config_maps(),
            'secrets': await self.list_secrets(),
            'horizontal_pod_autoscalers': await self.list_horizontal_pod_autoscalers(),
        }
        
        self.logger.info(
            f"Listed Kubernetes resources for {self.cluster_name}",
            **{f"total_{k}": len(v) for k, v in resources.items()}
        )
        return resources
    
    @retry_with_backoff(max_retries=3)
    async def list_namespaces(self) -> List[Dict[str, Any]]:
        try:
            return self._serialize(self.v1.list_namespace().items)
        except ApiException as e:
            raise DiscoveryException("Kubernetes", f"Failed to list namespaces: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def list_pods(self) -> List[Dict[str, Any]]:
        try:
            return self._serialize(self.v1.list_pod_for_all_namespaces().items)
        except ApiException as e:
            raise DiscoveryException("Kubernetes", f"Failed to list pods: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def list_deployments(self) -> List[Dict[str, Any]]:
        try:
            return self._serialize(self.apps_v1.list_deployment_for_all_namespaces().items)
        except ApiException as e:
            raise DiscoveryException("Kubernetes", f"Failed to list deployments: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def list_services(self) -> List[Dict[str, Any]]:
        try:
            return self._serialize(self.v1.list_service_for_all_namespaces().items)
        except ApiException as e:
            raise DiscoveryException("Kubernetes", f"Failed to list services: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def list_config_maps(self) -> List[Dict[str, Any]]:
        try:
            return self._serialize(self.v1.list_config_map_for_all_namespaces().items)
        except ApiException as e:
            raise DiscoveryException("Kubernetes", f"Failed to list config maps: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def list_secrets(self) -> List[Dict[str, Any]]:
        """List secrets. Only metadata is used downstream; data is dropped here."""
        try:
            secrets = self._serialize(self.v1.list_secret_for_all_namespaces().items)
            for secret in secrets:
                secret.pop('data', None)
                secret.pop('stringData', None)
            return secrets
        except ApiException as e:
            raise DiscoveryException("Kubernetes", f"Failed to list secrets: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def list_horizontal_pod_autoscalers(self) -> List[Dict[str, Any]]:
        try:
            return self._serialize(
                self.autoscaling_v2.list_horizontal_pod_autoscaler_for_all_namespaces().items
            )
        except ApiException as e:
            raise DiscoveryException("Kubernetes", f"Failed to list horizontal pod autoscalers: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def has_constraint_templates(self) -> bool:
        """Whether the Gatekeeper ConstraintTemplate CRD is installed."""
        self._ensure_connected("Kubernetes")
        try:
            self.apiextensions_v1.read_custom_resource_definition(CONSTRAINT_TEMPLATE_CRD)
            return True
        except ApiException as e:
            if e.status == 404:
                return False
            raise DiscoveryException("Kubernetes", f"Failed to look up {CONSTRAINT_TEMPLATE_CRD}: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def list_constraint_templates(self) -> List[Dict[str, Any]]:
        self._ensure_connected("Kubernetes")
        try:
            response = self.custom_objects.list_cluster_custom_object(
                GATEKEEPER_GROUP, "v1", CONSTRAINT_TEMPLATE_PLURAL
            )
            return response.get('items', [])
        except ApiException as e:
            raise DiscoveryException("Kubernetes", f"Failed to list constraint templates: {e}")
