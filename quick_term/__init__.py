"""Quick Term: placeholder-aware terminal command templates with history."""
