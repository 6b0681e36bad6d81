"""Cache-first resolution with upstream refresh and stale fallback."""
