"""Shipment HTTP routes."""
