"""Resource clients for the Taskboard REST API."""
