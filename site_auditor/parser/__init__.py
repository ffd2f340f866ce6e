"""site_auditor.parser: HTML extraction and sitemap parsing."""
