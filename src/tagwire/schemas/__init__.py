"""Schema documents, their registry and the revisions bundled with the package."""
