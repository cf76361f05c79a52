"""Kubernetes-backed cluster handle."""

import asyncio
import base64
import binascii
import logging
from typing import Any, Callable

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError, MaxRetryError, NewConnectionError
from urllib3.exceptions import TimeoutError as TransportTimeoutError

from corefwd.core.base import BaseClusterHandle
from corefwd.core.errors import (
    ConnectivityError,
    CoreDNSManagerError,
    CredentialError,
    OperationTimeoutError,
    RemoteFetchError,
    RemoteWriteError,
)
from corefwd.core.models import Cluster

logger = logging.getLogger(__name__)

COREDNS_NAMESPACE = "kube-system"
COREDNS_CONFIGMAP = "coredns"
KUBE_DNS_SERVICE = "kube-dns"
COREFILE_KEY = "Corefile"


class KubernetesClusterHandle(BaseClusterHandle):
    """
    CoreDNS access for one cluster through the Kubernetes API.

    Handles:
    - Corefile read/write via the coredns ConfigMap
    - kube-dns service address lookup
    - API server liveness probe
    """

    def __init__(self, cluster_id: str, api_client: client.ApiClient):
        self.cluster_id = cluster_id
        self.api_client = api_client
        self._core_v1: client.CoreV1Api | None = None
        self._version: client.VersionApi | None = None

    @property
    def core_v1(self) -> client.CoreV1Api:
        if not self._core_v1:
            self._core_v1 = client.CoreV1Api(self.api_client)
        return self._core_v1

    @property
    def version(self) -> client.VersionApi:
        if not self._version:
            self._version = client.VersionApi(self.api_client)
        return self._version

    async def _call(
        self,
        action: str,
        func: Callable[..., Any],
        error_cls: type[CoreDNSManagerError],
        timeout: float | None,
        **kwargs: Any,
    ) -> Any:
        """Run a blocking client call in a thread, bounded by ``timeout``."""
        if timeout is not None:
            kwargs["_request_timeout"] = timeout
        timed_out = (
            f"Timed out after {timeout}s trying to {action} on cluster {self.cluster_id}"
        )
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, **kwargs), timeout)
        except asyncio.TimeoutError as e:
            raise OperationTimeoutError(timed_out) from e
        except ApiException as e:
            raise error_cls(f"Failed to {action}: {e.reason}") from e
        except HTTPError as e:
            # urllib3 may hit the same deadline before wait_for does
            if _is_transport_timeout(e):
                raise OperationTimeoutError(timed_out) from e
            raise error_cls(f"Failed to {action}: {e}") from e

    # ========================================================================
    # Corefile
    # ========================================================================

    async def _read_configmap(self, timeout: float | None, error_cls: type[CoreDNSManagerError]):
        return await self._call(
            "get coredns configmap",
            self.core_v1.read_namespaced_config_map,
            error_cls,
            timeout,
            name=COREDNS_CONFIGMAP,
            namespace=COREDNS_NAMESPACE,
        )

    async def fetch_corefile(self, timeout: float | None = None) -> str:
        cm = await self._read_configmap(timeout, RemoteFetchError)
        data = cm.data or {}
        if COREFILE_KEY not in data:
            logger.warning(f"ConfigMap {COREDNS_CONFIGMAP} on {self.cluster_id} has no Corefile")
        return data.get(COREFILE_KEY, "")

    async def store_corefile(self, corefile: str, timeout: float | None = None) -> None:
        cm = await self._read_configmap(timeout, RemoteWriteError)

        if not cm.data:
            cm.data = {}
        cm.data[COREFILE_KEY] = corefile

        await self._call(
            "update coredns configmap",
            self.core_v1.replace_namespaced_config_map,
            RemoteWriteError,
            timeout,
            name=COREDNS_CONFIGMAP,
            namespace=COREDNS_NAMESPACE,
            body=cm,
        )

    # ========================================================================
    # Service & Health
    # ========================================================================

    async def resolver_address(self, timeout: float | None = None) -> str:
        svc = await self._call(
            "get kube-dns service",
            self.core_v1.read_namespaced_service,
            RemoteFetchError,
            timeout,
            name=KUBE_DNS_SERVICE,
            namespace=COREDNS_NAMESPACE,
        )
        return svc.spec.cluster_ip or ""

    async def probe(self, timeout: float | None = None) -> None:
        await self._call("get server version", self.version.get_code, ConnectivityError, timeout)


def _is_transport_timeout(error: HTTPError) -> bool:
    if isinstance(error, MaxRetryError):
        error = error.reason
    # NewConnectionError subclasses ConnectTimeoutError but means refused
    return isinstance(error, TransportTimeoutError) and not isinstance(error, NewConnectionError)


def decode_kubeconfig(encoded: str) -> dict[str, Any]:
    """Decode a base64 kubeconfig into its YAML document."""
    try:
        raw = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise CredentialError(f"Failed to decode kubeconfig: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise CredentialError(f"Invalid YAML in kubeconfig: {e}") from e

    if not isinstance(data, dict):
        raise CredentialError("Kubeconfig is not a mapping")
    return data


def build_handle(cluster: Cluster) -> KubernetesClusterHandle:
    """Create a handle from the cluster's stored kubeconfig."""
    kubeconfig = decode_kubeconfig(cluster.kubeconfig)

    configuration = client.Configuration()
    try:
        config.load_kube_config_from_dict(
            config_dict=kubeconfig,
            client_configuration=configuration,
            persist_config=False,
        )
    except (config.ConfigException, KeyError, TypeError, ValueError) as e:
        raise CredentialError(f"Failed to build kubernetes client: {e}") from e

    # Failed calls surface to the caller instead of being retried by urllib3
    configuration.retries = False
    return KubernetesClusterHandle(cluster.id, client.ApiClient(configuration=configuration))
