"""Relay server: rooms, viewer WebSockets and slide fan-out."""
