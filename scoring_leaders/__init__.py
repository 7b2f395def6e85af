"""Grade-cohort scoring leaderboard."""
