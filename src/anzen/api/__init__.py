"""HTTP surface for category search, reports and internal case intake."""
