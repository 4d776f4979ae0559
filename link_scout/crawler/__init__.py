"""link_scout.crawler: probe client, cache and concurrent link validation."""
