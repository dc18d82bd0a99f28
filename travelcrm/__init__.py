"""TravelCRM: travel agency client pipeline and commission tracking."""
