"""
Persistence layer for the Reobote lead agent.
"""
