"""Identity store: email -> push token and notification preference."""
