"""Script evaluation and loader specification rendering.

Only the evaluator is re-exported here; :mod:`.generator` and :mod:`.meta`
depend on :mod:`aware_bundler.models`, which itself imports the evaluator.
"""

from .script import CLASS_HELPERS, Closure, Opaque, evaluate, parse_closure, render_literal, subclass

__all__ = ["CLASS_HELPERS", "Closure", "Opaque", "evaluate", "parse_closure", "render_literal", "subclass"]
