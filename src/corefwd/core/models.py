"""Core data models for the CoreDNS forward-rule manager."""

from datetime import datetime

from pydantic import BaseModel, Field

from corefwd.core.errors import InvalidInputError

# ============================================================================
# Corefile grammar
# ============================================================================

DNS_PORT_SUFFIX = ":53"
SERVICE_SUFFIX = ".svc.cluster.local"
FORWARD_DIRECTIVE = "forward ."
INDENT = "    "

# Server block keys that are never forward rules
ROOT_ZONES = frozenset({"", ".", "cluster.local"})

_FORBIDDEN_CHARS = set("{}#")


def parse_name_input(text: str) -> tuple[str, str, bool]:
    """
    Split user input into ``(service_name, namespace, is_full_fqdn)``.

    Accepts ``namespace``, ``service.namespace`` or either of those followed
    by ``.svc.cluster.local``. The namespace is empty only for empty input,
    which callers must reject first.
    """
    name = text.strip()
    is_full_fqdn = False
    if name.endswith(SERVICE_SUFFIX):
        name = name[: -len(SERVICE_SUFFIX)]
        is_full_fqdn = True

    if "." in name:
        service_name, namespace = name.split(".", 1)
        return service_name, namespace, is_full_fqdn
    return "", name, is_full_fqdn


def parse_rule_identity(text: str) -> tuple[str, bool]:
    """Full name and FQDN flag of the rule a user-supplied name refers to."""
    service_name, namespace, is_full_fqdn = parse_name_input(text)
    if not namespace:
        raise InvalidInputError(f"Rule name {text!r} has no namespace")
    if service_name:
        return f"{service_name}.{namespace}", is_full_fqdn
    return namespace, is_full_fqdn


# ============================================================================
# Forward Rules
# ============================================================================


class ForwardRule(BaseModel):
    """A Corefile block forwarding one namespace or service to another cluster."""

    namespace: str = Field(..., min_length=1, description="Target namespace, e.g. 'prod'")
    service_name: str = Field(default="", description="Service name for service-scoped rules")
    target_ip: str = Field(..., description="Resolver address of the remote cluster")
    is_full_fqdn: bool = Field(
        default=False, description="Rendered as <name>.svc.cluster.local instead of short form"
    )

    @property
    def full_name(self) -> str:
        if self.service_name:
            return f"{self.service_name}.{self.namespace}"
        return self.namespace

    @property
    def header(self) -> str:
        """Server block key without the opening brace."""
        return rule_header(self.full_name, self.is_full_fqdn)

    def same_rule(self, other: "ForwardRule") -> bool:
        """Rules are the same when their full names match, whatever their form."""
        return self.full_name == other.full_name

    def to_corefile(self) -> str:
        """Render the rule as a Corefile server block (no trailing newline)."""
        lines = [f"{self.header} {{"]
        if not self.is_full_fqdn:
            if self.service_name:
                lines.append(
                    f"{INDENT}rewrite name exact {self.full_name} "
                    f"{self.full_name}{SERVICE_SUFFIX}. answer auto"
                )
            else:
                lines.append(
                    f"{INDENT}rewrite name regex (.*)\\.{self.namespace} "
                    f"{self.namespace}{SERVICE_SUFFIX}. answer auto"
                )
        lines.append(f"{INDENT}{FORWARD_DIRECTIVE} {self.target_ip}")
        lines.append("}")
        return "\n".join(lines)

    @classmethod
    def from_name_input(cls, text: str, target_ip: str) -> "ForwardRule":
        """Build a rule from free-form name input, rejecting malformed names."""
        if not text or not text.strip():
            raise InvalidInputError("Rule name must not be empty")

        stripped = text.strip()
        if any(c.isspace() for c in stripped) or _FORBIDDEN_CHARS & set(stripped):
            raise InvalidInputError(f"Invalid rule name: {stripped!r}")

        service_name, namespace, is_full_fqdn = parse_name_input(stripped)
        if not namespace:
            raise InvalidInputError(f"Rule name {stripped!r} has no namespace")

        full_name = f"{service_name}.{namespace}" if service_name else namespace
        domain = rule_header(full_name, is_full_fqdn)[: -len(DNS_PORT_SUFFIX)]
        if domain in ROOT_ZONES:
            raise InvalidInputError(f"Rule name {stripped!r} would shadow the {domain} zone")

        target = (target_ip or "").strip()
        if not target or any(c.isspace() for c in target) or _FORBIDDEN_CHARS & set(target):
            raise InvalidInputError(f"Invalid target IP: {target_ip!r}")

        return cls(
            namespace=namespace,
            service_name=service_name,
            target_ip=target,
            is_full_fqdn=is_full_fqdn,
        )


def rule_header(full_name: str, is_full_fqdn: bool) -> str:
    """Server block key a rule with this identity is written under."""
    if is_full_fqdn:
        return f"{full_name}{SERVICE_SUFFIX}{DNS_PORT_SUFFIX}"
    return f"{full_name}{DNS_PORT_SUFFIX}"


class CoreDNSInfo(BaseModel):
    """Read-only snapshot of a cluster's CoreDNS configuration."""

    cluster_id: str
    corefile: str = Field(..., description="Full Corefile text")
    service_ip: str = Field(default="", description="Cluster IP of the kube-dns service")
    forward_rules: list[ForwardRule] = Field(default_factory=list)


# ============================================================================
# Cluster Models
# ============================================================================


class Cluster(BaseModel):
    """A registered Kubernetes cluster."""

    id: str = ""
    name: str
    kubeconfig: str = Field(..., description="Base64 encoded kubeconfig")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ClusterStatus(BaseModel):
    """Connection status of a cluster."""

    connected: bool
    error: str | None = None


class ClusterView(BaseModel):
    """Cluster listing entry; never carries the credential."""

    id: str
    name: str
    created_at: datetime
    connected: bool
    error: str | None = None

    @classmethod
    def from_cluster(cls, cluster: Cluster, status: ClusterStatus) -> "ClusterView":
        return cls(
            id=cluster.id,
            name=cluster.name,
            created_at=cluster.created_at,
            connected=status.connected,
            error=status.error,
        )


# ============================================================================
# Configuration Models
# ============================================================================


class ConfigValidationError(BaseModel):
    """Configuration validation error."""

    line: int | None = None
    message: str
    severity: str = "error"  # error, warning


class ConfigValidationResult(BaseModel):
    """Result of configuration validation."""

    valid: bool
    errors: list[ConfigValidationError] = Field(default_factory=list)
    warnings: list[ConfigValidationError] = Field(default_factory=list)
