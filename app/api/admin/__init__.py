"""Staff back office: authentication, quote management, artwork and analytics."""
