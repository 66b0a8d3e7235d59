"""User document management: upload, review, Discovery bulk review, API."""
