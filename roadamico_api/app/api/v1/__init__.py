"""Version 1 of the API: lists, events, places and notifications."""
