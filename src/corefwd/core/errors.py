"""Error types raised by the forward-rule engine and its collaborators."""


class CoreDNSManagerError(Exception):
    """Base class for all manager errors."""

    kind = "error"


class InvalidInputError(CoreDNSManagerError):
    """Rule name or target rejected before any remote call."""

    kind = "invalid_input"


class DuplicateRuleError(CoreDNSManagerError):
    """A rule with the same full name already exists in the Corefile."""

    kind = "duplicate_rule"


class RuleNotFoundError(CoreDNSManagerError):
    """No block matched the rule being deleted."""

    kind = "rule_not_found"


class ClusterNotFoundError(CoreDNSManagerError):
    """Cluster id is not present in the registry."""

    kind = "cluster_not_found"


class CredentialError(CoreDNSManagerError):
    """Stored kubeconfig could not be turned into a client."""

    kind = "invalid_credential"


class RemoteFetchError(CoreDNSManagerError):
    """Reading remote state failed."""

    kind = "remote_fetch_failed"


class RemoteWriteError(CoreDNSManagerError):
    """Writing the Corefile back failed."""

    kind = "remote_write_failed"


class ConnectivityError(CoreDNSManagerError):
    """Liveness probe against a cluster failed."""

    kind = "connectivity_failed"


class OperationTimeoutError(CoreDNSManagerError):
    """
    A remote call exceeded its deadline.

    The remote side effect is undefined: the request may or may not have
    been applied. Re-fetch before retrying.
    """

    kind = "timeout"
