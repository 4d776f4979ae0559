"""link_scout.parser: sitemap discovery and parsing."""
