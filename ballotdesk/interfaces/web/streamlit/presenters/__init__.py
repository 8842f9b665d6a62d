"""プレゼンター."""
