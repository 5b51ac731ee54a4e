"""Jobs standalone del relay."""
