"""CoreDNS Corefile codec and rule manager."""

from corefwd.core.coredns.config import CorefileRuleParser, CorefileRuleWriter, validate_corefile
from corefwd.core.coredns.manager import CoreDNSRuleManager

__all__ = ["CorefileRuleParser", "CorefileRuleWriter", "CoreDNSRuleManager", "validate_corefile"]
