"""Calendar event models and the Google Calendar upstream client."""
