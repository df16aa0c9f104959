"""Command-line sub-applications for Reviewflow."""
