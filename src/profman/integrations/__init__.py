"""Google Drive and Sheets integrations."""
