"""Breaking-change checks and their aggregation."""
