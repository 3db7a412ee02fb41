from gsd_opencode.rules.loader import merge_rules, resolve_rules
from gsd_opencode.rules.models import SectionRules, TransformRules

__all__ = ["SectionRules", "TransformRules", "merge_rules", "resolve_rules"]
