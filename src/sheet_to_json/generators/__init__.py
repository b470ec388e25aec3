"""JSON document building, rendering and writing."""
