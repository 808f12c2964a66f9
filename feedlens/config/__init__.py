"""FeedLens configuration."""
