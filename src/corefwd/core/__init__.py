"""Core library modules for CoreDNS forward rule management."""

from corefwd.core.errors import (
    ClusterNotFoundError,
    ConnectivityError,
    CoreDNSManagerError,
    CredentialError,
    DuplicateRuleError,
    InvalidInputError,
    OperationTimeoutError,
    RemoteFetchError,
    RemoteWriteError,
    RuleNotFoundError,
)
from corefwd.core.models import Cluster, CoreDNSInfo, ForwardRule, parse_name_input

__all__ = [
    "Cluster",
    "ClusterNotFoundError",
    "ConnectivityError",
    "CoreDNSInfo",
    "CoreDNSManagerError",
    "CredentialError",
    "DuplicateRuleError",
    "ForwardRule",
    "InvalidInputError",
    "OperationTimeoutError",
    "RemoteFetchError",
    "RemoteWriteError",
    "RuleNotFoundError",
    "parse_name_input",
]
