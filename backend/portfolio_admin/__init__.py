"""Portfolio Admin - administrator authentication backend for the portfolio site."""
