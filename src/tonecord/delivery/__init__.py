"""Delivery of streamed text into chat messages."""
