"""Reservation engine: policy rules, availability checks and the store adapter."""
