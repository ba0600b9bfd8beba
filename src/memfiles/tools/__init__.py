"""Tool surfaces exposed to the agent."""
