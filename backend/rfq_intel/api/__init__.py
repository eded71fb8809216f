"""API package.

This exposes router modules to simplify test imports like:
	from rfq_intel.api.routes.rfq import router
"""

__all__ = [
	"routes",
	"endpoints",
]
