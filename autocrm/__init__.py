"""AutoCRM ticketing API."""
