"""Social graph: symmetric friendships and the screen-time leaderboard."""
