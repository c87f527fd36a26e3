"""SSH CLI access to network equipment."""
