from esfold.components.rules import Rule, RULES, apply_rules
from esfold.components.decompute import decompute
from esfold.components.fold import fold, fold_counted
