"""Static architecture-fact extraction for mixed JavaScript/Python codebases.

Modules:
- fs_scan.py: Locating source units under a root and assigning language families.
- js_parse.py: tree-sitter parsing of JavaScript units (classes, registrations, bindings).
- patterns.py: Named text-pattern rules for units without parser support.
- manifests.py: Dependency manifests for the tech-stack section.
- aggregate.py: Merging extraction results into the frozen architecture model.
- engine.py: One analysis run, sequential or on a worker pool.
- model.py: Data structures shared by all of the above.
"""

__all__ = [
	"fs_scan",
	"js_parse",
	"patterns",
	"manifests",
	"aggregate",
	"engine",
	"model",
]
