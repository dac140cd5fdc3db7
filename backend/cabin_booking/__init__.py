"""Availability, pricing and reservation engine for the cabin rental site."""
