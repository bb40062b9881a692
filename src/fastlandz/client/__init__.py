"""Client module - Store client, local storage, offline sync and trackers."""
