"""Corefile forward-rule parser and writer."""

from corefwd.core.models import (
    DNS_PORT_SUFFIX,
    FORWARD_DIRECTIVE,
    ROOT_ZONES,
    SERVICE_SUFFIX,
    ConfigValidationError,
    ConfigValidationResult,
    ForwardRule,
    rule_header,
)

# Lines scanned after a header when looking for the forward directive
LOOKAHEAD_LINES = 9


class CorefileRuleParser:
    """
    Extract forward rules from a Corefile.

    Only blocks shaped like the ones ``ForwardRule.to_corefile`` renders are
    recognised; everything else is ignored. Blocks without a ``forward .``
    line inside the lookahead window are skipped rather than reported.
    """

    def parse(self, corefile: str) -> list[ForwardRule]:
        """Return rules in order of appearance. Duplicates are kept."""
        rules: list[ForwardRule] = []
        lines = corefile.split("\n")

        for i, line in enumerate(lines):
            domain = self._header_domain(line)
            if domain is None:
                continue

            is_full_fqdn = False
            if domain.endswith(SERVICE_SUFFIX):
                domain = domain[: -len(SERVICE_SUFFIX)]
                is_full_fqdn = True

            if "." in domain:
                service_name, namespace = domain.split(".", 1)
            else:
                service_name, namespace = "", domain
            if not namespace:
                continue

            target_ip = self._find_target(lines, i)
            if target_ip is None:
                continue

            rules.append(
                ForwardRule(
                    namespace=namespace,
                    service_name=service_name,
                    target_ip=target_ip,
                    is_full_fqdn=is_full_fqdn,
                )
            )

        return rules

    def _header_domain(self, line: str) -> str | None:
        """Domain part of a candidate rule header, or None if not a rule header."""
        trimmed = line.strip()
        if DNS_PORT_SUFFIX not in trimmed or not trimmed.endswith("{"):
            return None

        decl = trimmed[:-1]
        if decl.endswith(" "):
            decl = decl[:-1]
        if not decl.endswith(DNS_PORT_SUFFIX):
            return None

        domain = decl[: -len(DNS_PORT_SUFFIX)]
        if domain in ROOT_ZONES or any(c.isspace() for c in domain):
            return None
        return domain

    def _find_target(self, lines: list[str], header_index: int) -> str | None:
        end = min(len(lines), header_index + 1 + LOOKAHEAD_LINES)
        for j in range(header_index + 1, end):
            candidate = lines[j].strip()
            if candidate.startswith(FORWARD_DIRECTIVE):
                parts = candidate.split()
                if len(parts) >= 3:
                    return parts[2]
                return None
            if "}" in candidate:
                return None
        return None


class CorefileRuleWriter:
    """Append and remove forward rule blocks, leaving other lines untouched."""

    def append(self, corefile: str, rule: ForwardRule) -> str:
        return corefile + "\n" + rule.to_corefile() + "\n"

    def delete(self, corefile: str, full_name: str, is_full_fqdn: bool) -> tuple[str, int]:
        """
        Drop every block headed by the rule's server key.

        Returns the new text and the number of blocks removed. When nothing
        matches the text is returned unchanged.
        """
        prefix = rule_header(full_name, is_full_fqdn)
        kept: list[str] = []
        removed = 0
        in_block = False
        depth = 0

        for line in corefile.split("\n"):
            if not in_block and self._starts_block(line, prefix):
                in_block = True
                depth = 0
                removed += 1

            if in_block:
                depth += line.count("{") - line.count("}")
                if depth <= 0 and "}" in line:
                    in_block = False
                continue

            kept.append(line)

        if not removed:
            return corefile, 0
        return "\n".join(kept), removed

    @staticmethod
    def _starts_block(line: str, prefix: str) -> bool:
        trimmed = line.strip()
        if not trimmed.startswith(prefix):
            return False
        rest = trimmed[len(prefix) :]
        return not rest or rest[0].isspace() or rest[0] == "{"


# ============================================================================
# Advisory lint
# ============================================================================

KNOWN_PLUGINS = {
    "acl",
    "any",
    "autopath",
    "bind",
    "bufsize",
    "cache",
    "cancel",
    "chaos",
    "clouddns",
    "debug",
    "dns64",
    "dnssec",
    "dnstap",
    "erratic",
    "errors",
    "etcd",
    "file",
    "forward",
    "grpc",
    "health",
    "hosts",
    "k8s_external",
    "kubernetes",
    "loadbalance",
    "local",
    "log",
    "loop",
    "metadata",
    "minimal",
    "nsid",
    "pprof",
    "prometheus",
    "ready",
    "reload",
    "rewrite",
    "root",
    "route53",
    "secondary",
    "sign",
    "template",
    "tls",
    "trace",
    "transfer",
    "whoami",
}


def validate_corefile(corefile: str) -> ConfigValidationResult:
    """
    Check brace balance and flag unknown plugin directives.

    Advisory only; the write path never calls it.
    """
    errors: list[ConfigValidationError] = []
    warnings: list[ConfigValidationError] = []
    depth = 0

    for i, line in enumerate(corefile.split("\n"), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        outer = depth
        depth += stripped.count("{") - stripped.count("}")
        if depth < 0:
            errors.append(ConfigValidationError(line=i, message="Unexpected closing brace"))
            depth = 0
            continue

        # Directly inside a server block every line names a plugin
        word = stripped.split()[0]
        if outer == 1 and not word.startswith("}"):
            if word not in KNOWN_PLUGINS and word != "import":
                warnings.append(
                    ConfigValidationError(
                        line=i,
                        message=f"Unknown plugin or directive: {word}",
                        severity="warning",
                    )
                )

    if depth != 0:
        errors.append(ConfigValidationError(message=f"Unbalanced braces: {depth} unclosed"))

    return ConfigValidationResult(valid=not errors, errors=errors, warnings=warnings)
