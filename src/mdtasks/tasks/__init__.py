"""Task model, markdown parser, query manager and in-place updater."""
