"""Registration progression: DB-bound service and API."""
