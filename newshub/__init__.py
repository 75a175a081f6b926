"""NewsHub content administration: GitHub-backed JSON content store."""
