"""Assignment store: latest full snapshot of scraped due items per identity."""
