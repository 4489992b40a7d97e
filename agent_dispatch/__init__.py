"""Agent registry and tool-provider dispatcher."""
