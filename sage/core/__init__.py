"""Shared configuration, errors and logging for Sage."""
