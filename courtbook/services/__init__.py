"""Availability, booking, cancellation, forum and notification services."""
