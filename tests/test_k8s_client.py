"""Tests for the Kubernetes cluster handle."""

import base64
import time
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import (
    ConnectTimeoutError,
    HTTPError,
    MaxRetryError,
    NewConnectionError,
    ReadTimeoutError,
)

from corefwd.core.errors import (
    ConnectivityError,
    CredentialError,
    OperationTimeoutError,
    RemoteFetchError,
    RemoteWriteError,
)
from corefwd.core.k8s.client import (
    COREDNS_CONFIGMAP,
    COREDNS_NAMESPACE,
    KubernetesClusterHandle,
    build_handle,
    decode_kubeconfig,
)
from corefwd.core.models import Cluster

KUBECONFIG_YAML = """apiVersion: v1
kind: Config
clusters:
- name: test
  cluster:
    server: https://127.0.0.1:6443
contexts:
- name: test
  context:
    cluster: test
    user: test
current-context: test
users:
- name: test
  user:
    token: abc
"""


def encode(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


@pytest.fixture
def k8s_handle() -> KubernetesClusterHandle:
    handle = KubernetesClusterHandle("c1", MagicMock())
    handle._core_v1 = MagicMock()
    handle._version = MagicMock()
    return handle


class TestCorefileAccess:
    """Tests for ConfigMap reads and writes."""

    @pytest.mark.asyncio
    async def test_fetch_corefile(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.return_value = MagicMock(
            data={"Corefile": ".:53 {\n}\n"}
        )

        corefile = await k8s_handle.fetch_corefile(timeout=5.0)

        assert corefile == ".:53 {\n}\n"
        k8s_handle.core_v1.read_namespaced_config_map.assert_called_once_with(
            name=COREDNS_CONFIGMAP,
            namespace=COREDNS_NAMESPACE,
            _request_timeout=5.0,
        )

    @pytest.mark.asyncio
    async def test_fetch_missing_key_returns_empty(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.return_value = MagicMock(data=None)

        assert await k8s_handle.fetch_corefile() == ""

    @pytest.mark.asyncio
    async def test_fetch_api_error(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.side_effect = ApiException(
            status=403, reason="Forbidden"
        )

        with pytest.raises(RemoteFetchError, match="Forbidden"):
            await k8s_handle.fetch_corefile()

    @pytest.mark.asyncio
    async def test_fetch_transport_error(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.side_effect = HTTPError("connection reset")

        with pytest.raises(RemoteFetchError, match="connection reset"):
            await k8s_handle.fetch_corefile()

    @pytest.mark.asyncio
    async def test_fetch_timeout(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.side_effect = lambda **kwargs: time.sleep(0.5)

        with pytest.raises(OperationTimeoutError):
            await k8s_handle.fetch_corefile(timeout=0.05)

    @pytest.mark.asyncio
    async def test_fetch_transport_read_timeout(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.side_effect = ReadTimeoutError(
            None, "/", "Read timed out."
        )

        with pytest.raises(OperationTimeoutError) as exc_info:
            await k8s_handle.fetch_corefile(timeout=5.0)
        assert isinstance(exc_info.value.__cause__, ReadTimeoutError)

    @pytest.mark.asyncio
    async def test_store_connect_timeout_after_retries(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.side_effect = MaxRetryError(
            None, "/", reason=ConnectTimeoutError(None, "Connection timed out")
        )

        with pytest.raises(OperationTimeoutError):
            await k8s_handle.store_corefile("new", timeout=5.0)

    @pytest.mark.asyncio
    async def test_connection_refused_is_not_timeout(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.side_effect = MaxRetryError(
            None, "/", reason=NewConnectionError(None, "Connection refused")
        )

        with pytest.raises(RemoteFetchError):
            await k8s_handle.fetch_corefile()

    @pytest.mark.asyncio
    async def test_store_corefile(self, k8s_handle):
        cm = MagicMock(data={"Corefile": "old", "other": "kept"})
        k8s_handle.core_v1.read_namespaced_config_map.return_value = cm

        await k8s_handle.store_corefile("new")

        k8s_handle.core_v1.replace_namespaced_config_map.assert_called_once_with(
            name=COREDNS_CONFIGMAP,
            namespace=COREDNS_NAMESPACE,
            body=cm,
        )
        assert cm.data == {"Corefile": "new", "other": "kept"}

    @pytest.mark.asyncio
    async def test_store_corefile_empty_configmap(self, k8s_handle):
        cm = MagicMock(data=None)
        k8s_handle.core_v1.read_namespaced_config_map.return_value = cm

        await k8s_handle.store_corefile("new")

        assert cm.data == {"Corefile": "new"}

    @pytest.mark.asyncio
    async def test_store_read_failure_is_write_error(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.side_effect = ApiException(
            status=404, reason="Not Found"
        )

        with pytest.raises(RemoteWriteError):
            await k8s_handle.store_corefile("new")
        k8s_handle.core_v1.replace_namespaced_config_map.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_replace_failure(self, k8s_handle):
        k8s_handle.core_v1.read_namespaced_config_map.return_value = MagicMock(data={})
        k8s_handle.core_v1.replace_namespaced_config_map.side_effect = ApiException(
            status=409, reason="Conflict"
        )

        with pytest.raises(RemoteWriteError, match="Conflict"):
            await k8s_handle.store_corefile("new")


class TestServiceAndProbe:
    """Tests for resolver lookup and liveness."""

    @pytest.mark.asyncio
    async def test_resolver_address(self, k8s_handle):
        svc = MagicMock()
        svc.spec.cluster_ip = "10.96.0.10"
        k8s_handle.core_v1.read_namespaced_service.return_value = svc

        assert await k8s_handle.resolver_address() == "10.96.0.10"

    @pytest.mark.asyncio
    async def test_resolver_address_without_cluster_ip(self, k8s_handle):
        svc = MagicMock()
        svc.spec.cluster_ip = None
        k8s_handle.core_v1.read_namespaced_service.return_value = svc

        assert await k8s_handle.resolver_address() == ""

    @pytest.mark.asyncio
    async def test_probe(self, k8s_handle):
        await k8s_handle.probe(timeout=5.0)

        k8s_handle.version.get_code.assert_called_once_with(_request_timeout=5.0)

    @pytest.mark.asyncio
    async def test_probe_failure(self, k8s_handle):
        k8s_handle.version.get_code.side_effect = ApiException(status=401, reason="Unauthorized")

        with pytest.raises(ConnectivityError, match="Unauthorized"):
            await k8s_handle.probe()


class TestKubeconfig:
    """Tests for kubeconfig decoding and client construction."""

    def test_decode_kubeconfig(self):
        data = decode_kubeconfig(encode(KUBECONFIG_YAML))
        assert data["current-context"] == "test"

    @pytest.mark.parametrize(
        "encoded",
        [
            "not base64!!",
            encode("- just\n- a list\n"),
            encode("key: [unclosed"),
            base64.b64encode(b"\xff\xfe").decode(),
        ],
        ids=["bad-base64", "not-mapping", "bad-yaml", "bad-utf8"],
    )
    def test_decode_kubeconfig_errors(self, encoded):
        with pytest.raises(CredentialError):
            decode_kubeconfig(encoded)

    def test_build_handle(self):
        cluster = Cluster(id="c1", name="prod", kubeconfig=encode(KUBECONFIG_YAML))

        handle = build_handle(cluster)

        assert isinstance(handle, KubernetesClusterHandle)
        assert handle.cluster_id == "c1"
        assert handle.api_client.configuration.host == "https://127.0.0.1:6443"
        # Connection failures are not retried behind the caller's back
        assert handle.api_client.configuration.retries is False

    def test_build_handle_config_error(self):
        cluster = Cluster(id="c1", name="prod", kubeconfig=encode("apiVersion: v1\n"))

        with patch(
            "corefwd.core.k8s.client.config.load_kube_config_from_dict",
            side_effect=ConfigException("Invalid kube-config file. No configuration found."),
        ):
            with pytest.raises(CredentialError, match="No configuration found"):
                build_handle(cluster)
