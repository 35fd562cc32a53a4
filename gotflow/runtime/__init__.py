"""
Runtime package for execution.

Architecture:
- Cooperative cancellation tokens
- Scoped activity and transition contexts
- The activity processor running the behavior pipeline
"""
