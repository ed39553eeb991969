"""HTTP layer: versioned routers live in subpackages."""
