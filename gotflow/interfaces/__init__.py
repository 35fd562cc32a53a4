"""
Protocols and type aliases for the collaborators of the engine.
"""
