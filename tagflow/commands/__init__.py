"""Click commands for the tagflow CLI."""
