"""Domain layer - playlist state, catalog access and playback."""
